class GitletError(Exception):
    """Base exception for all user-facing Gitlet errors.

    Every subclass carries the exact line printed by the command line
    front-end, so ``str(error)`` is what the user sees.
    """
    message = 'Gitlet error.'

    def __init__(self, message=None):
        super().__init__(message or self.message)


class NoSuchFileError(GitletError):
    message = 'File does not exist.'


class NoSuchBranchError(GitletError):
    message = 'No such branch exists.'


class BranchMissingError(NoSuchBranchError):
    message = 'A branch with that name does not exist.'


class NoSuchCommitError(GitletError):
    message = 'No commit with that id exists.'


class AmbiguousPrefixError(GitletError):
    message = 'More than one commit has the same id prefix.'


class PrefixTooShortError(GitletError):
    message = 'Commit id should contain at least 4 characters.'


class AlreadyInitializedError(GitletError):
    message = 'A Gitlet version-control system already exists in the current directory.'


class AlreadyOnBranchError(GitletError):
    message = 'No need to checkout the current branch.'


class BranchExistsError(GitletError):
    message = 'A branch with that name already exists.'


class CannotRemoveCurrentError(GitletError):
    message = 'Cannot remove the current branch.'


class NothingStagedError(GitletError):
    message = 'No changes added to the commit.'


class NoReasonToRemoveError(GitletError):
    message = 'No reason to remove the file.'


class MergeSelfError(GitletError):
    message = 'Cannot merge a branch with itself.'


class UncommittedChangesError(GitletError):
    message = 'You have uncommitted changes.'


class UntrackedInTheWayError(GitletError):
    message = 'There is an untracked file in the way; delete it, or add and commit it first.'


class FileNotInCommitError(GitletError):
    message = 'File does not exist in that commit.'


class NoMatchingCommitError(GitletError):
    message = 'Found no commit with that message.'


class EmptyMessageError(GitletError):
    message = 'Please enter a commit message.'


class NotInitializedError(GitletError):
    message = 'Not in an initialized Gitlet directory.'


class BadOperandsError(GitletError):
    message = 'Incorrect operands.'


class NoCommandError(BadOperandsError):
    message = 'Please enter a command.'


class UnknownCommandError(GitletError):
    message = 'No command with that name exists.'


class RepositoryCorruptError(Exception):
    """Repository state violates an invariant; not a user error."""
    pass


class InvalidObjectError(RepositoryCorruptError):
    """Raised when a stored object or the index cannot be decoded."""
    pass
