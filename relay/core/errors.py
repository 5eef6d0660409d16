"""Exit codes for relay commands.

Values are used as process exit codes and should remain stable:
- 0: Success
- 1: User error (bad selection, invalid arguments, cancelled by operator)
- 2: Environment error (not a git repository, missing remote, dirty tree)
- 3: Git error (checkout, cherry-pick or push failed mid-run)
- 4: Partial push (some remotes updated, others rejected)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    GIT_ERROR = 3
    PARTIAL_PUSH = 4

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
