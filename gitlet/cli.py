import logging
import os
import sys
import time
from typing import List, Optional
from . import porcelain
from .merge import (merge, MergeKind, ANCESTOR_MESSAGE, CONFLICT_MESSAGE,
                    FAST_FORWARD_MESSAGE)
from .repository import open_repository
from .exceptions import (BadOperandsError, EmptyMessageError, GitletError, NoCommandError,
                         UnknownCommandError)


logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = 'GITLET_LOG_LEVEL'
FROZEN_TIME_ENV = 'GITLET_FROZEN_TIME'


def _expect(operands: List[str], count: int):
    if len(operands) != count:
        raise BadOperandsError()


def cmd_init(repo, operands):
    _expect(operands, 0)
    porcelain.init(os.getcwd(), clock=clock_from_env())


def cmd_add(repo, operands):
    _expect(operands, 1)
    porcelain.add(repo, operands[0])


def cmd_commit(repo, operands):
    _expect(operands, 1)
    if not operands[0]:
        raise EmptyMessageError()
    porcelain.commit(repo, operands[0])


def cmd_rm(repo, operands):
    _expect(operands, 1)
    porcelain.rm(repo, operands[0])


def cmd_log(repo, operands):
    _expect(operands, 0)
    print('\n'.join(commit.log_entry() for commit in porcelain.log(repo)))


def cmd_global_log(repo, operands):
    _expect(operands, 0)
    print('\n'.join(commit.log_entry() for commit in porcelain.global_log(repo)))


def cmd_find(repo, operands):
    _expect(operands, 1)
    for commit_id in porcelain.find(repo, operands[0]):
        print(commit_id)


def format_status(status) -> str:
    lines = ['=== Branches ===']
    for name in status.branches:
        lines.append(('*' if name == status.current_branch else '') + name)

    sections = [
        ('Staged Files', status.staged),
        ('Removed Files', status.removed),
        ('Modifications Not Staged For Commit', status.modified),
        ('Untracked Files', status.untracked),
    ]
    for title, entries in sections:
        lines.append('')
        lines.append(f'=== {title} ===')
        lines.extend(entries)

    lines.append('')
    return '\n'.join(lines)


def cmd_status(repo, operands):
    _expect(operands, 0)
    print(format_status(porcelain.status(repo)))


def cmd_checkout(repo, operands):
    if len(operands) == 2 and operands[0] == '--':
        porcelain.checkout_file(repo, operands[1])
    elif len(operands) == 3 and operands[1] == '--':
        porcelain.checkout_commit_file(repo, operands[0], operands[2])
    elif len(operands) == 1:
        porcelain.checkout_branch(repo, operands[0])
    else:
        raise BadOperandsError()


def cmd_branch(repo, operands):
    _expect(operands, 1)
    porcelain.branch(repo, operands[0])


def cmd_rm_branch(repo, operands):
    _expect(operands, 1)
    porcelain.rm_branch(repo, operands[0])


def cmd_reset(repo, operands):
    _expect(operands, 1)
    porcelain.reset(repo, operands[0])


def cmd_merge(repo, operands):
    _expect(operands, 1)
    result = merge(repo, operands[0])

    if result.kind == MergeKind.ANCESTOR:
        print(ANCESTOR_MESSAGE)
    elif result.kind == MergeKind.FAST_FORWARD:
        print(FAST_FORWARD_MESSAGE)
    elif result.conflicted:
        print(CONFLICT_MESSAGE)


COMMANDS = {
    'init': cmd_init,
    'add': cmd_add,
    'commit': cmd_commit,
    'rm': cmd_rm,
    'log': cmd_log,
    'global-log': cmd_global_log,
    'find': cmd_find,
    'status': cmd_status,
    'checkout': cmd_checkout,
    'branch': cmd_branch,
    'rm-branch': cmd_rm_branch,
    'reset': cmd_reset,
    'merge': cmd_merge,
}


def clock_from_env():
    """Commit clock: wall time, or a fixed instant from GITLET_FROZEN_TIME."""
    frozen = os.environ.get(FROZEN_TIME_ENV)
    if frozen is None:
        return time.time
    seconds = float(frozen)
    return lambda: seconds


def configure_logging():
    level_name = os.environ.get(LOG_LEVEL_ENV, 'WARNING').upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, stream=sys.stderr,
                        format='%(levelname)s %(name)s: %(message)s')


def run(args: List[str]):
    """
    Dispatch one command line. Every command but init needs an initialized
    repository in the current directory; that is checked before operands.
    """
    if not args:
        raise NoCommandError()

    command, operands = args[0], args[1:]
    handler = COMMANDS.get(command)

    if handler is None:
        raise UnknownCommandError()

    repo = None
    if command != 'init':
        repo = open_repository(os.getcwd(), clock=clock_from_env())

    logger.debug("running %s %r", command, operands)
    handler(repo, operands)


def main(argv: Optional[List[str]] = None):
    configure_logging()
    args = sys.argv[1:] if argv is None else list(argv)

    try:
        run(args)
    except GitletError as e:
        print(e)


if __name__ == '__main__':
    main()
