"""Git adapter for running commitgate as a server-side hook."""

from commitgate.git.exec import GitCommandError, GitResult, run_git
from commitgate.git.repository import GitRepository, parse_pre_receive

__all__ = ["GitCommandError", "GitRepository", "GitResult", "parse_pre_receive", "run_git"]
