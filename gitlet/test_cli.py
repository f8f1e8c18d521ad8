import logging
import re
import runpy
import sys
from unittest.mock import patch
import pytest

from gitlet import cli
from gitlet.cli import format_status, clock_from_env, configure_logging
from gitlet.porcelain import Status
from gitlet.exceptions import RepositoryCorruptError


def run(*argv):
    cli.main(list(argv))


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('GITLET_FROZEN_TIME', '1700000000')
    return tmp_path


@pytest.fixture
def repo(workdir, capsys):
    run('init')
    capsys.readouterr()
    return workdir


def output(capsys):
    return capsys.readouterr().out


def commit_ids(log_text):
    return re.findall(r'^commit ([0-9a-f]{40})$', log_text, re.MULTILINE)


class TestDispatch:

    def test_no_command(self, workdir, capsys):
        run()
        assert output(capsys) == 'Please enter a command.\n'

    def test_unknown_command(self, workdir, capsys):
        run('push')
        assert output(capsys) == 'No command with that name exists.\n'

    def test_not_initialized(self, workdir, capsys):
        run('status')
        assert output(capsys) == 'Not in an initialized Gitlet directory.\n'

    def test_not_initialized_checked_before_operands(self, workdir, capsys):
        run('add')
        assert output(capsys) == 'Not in an initialized Gitlet directory.\n'

    def test_incorrect_operands(self, repo, capsys):
        run('add')
        run('log', 'extra')
        run('checkout', 'a', 'b')
        run('checkout', 'id', '++', 'file')
        assert output(capsys) == 'Incorrect operands.\n' * 4

    def test_init_twice(self, repo, capsys):
        run('init')
        assert output(capsys) == (
            'A Gitlet version-control system already exists in the current directory.\n'
        )

    def test_user_errors_exit_cleanly(self, repo, capsys):
        # main returns normally so the process exits with status 0
        assert cli.main(['rm', 'nothing']) is None
        assert output(capsys) == 'No reason to remove the file.\n'

    def test_faults_propagate(self, repo):
        with patch('gitlet.porcelain.status', side_effect=RepositoryCorruptError('bad index')):
            with pytest.raises(RepositoryCorruptError):
                run('status')

    def test_run_module_main(self, workdir, capsys, monkeypatch):
        monkeypatch.setattr(sys, 'argv', ['gitlet'])
        runpy.run_module('gitlet', run_name='__main__')
        assert 'Please enter a command.' in output(capsys)


class TestCommands:

    def test_add_missing_file(self, repo, capsys):
        run('add', 'A')
        assert output(capsys) == 'File does not exist.\n'

    def test_commit_messages(self, repo, capsys):
        run('commit', '')
        run('commit', 'nothing staged')
        assert output(capsys) == (
            'Please enter a commit message.\n'
            'No changes added to the commit.\n'
        )

    def test_log_after_one_commit(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'a')
        run('log')

        text = output(capsys)
        ids = commit_ids(text)
        entries = text.strip().split('\n\n')

        assert len(ids) == 2
        assert len(entries) == 2
        assert entries[0].endswith('\na')
        assert entries[1].endswith('\ninitial commit')
        assert 'Merge:' not in text
        assert 'Date: Thu Jan 1 09:00:00 1970 +0900' in entries[1]
        assert 'Date: Wed Nov 15 07:13:20 2023 +0900' in entries[0]

    def test_global_log_and_find(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'same')
        (repo / 'A').write_text('b\n')
        run('add', 'A')
        run('commit', 'same')
        run('global-log')

        ids = commit_ids(output(capsys))
        assert len(ids) == 3

        run('find', 'same')
        found = output(capsys).split()
        assert len(found) == 2
        assert set(found) <= set(ids)

        run('find', 'missing')
        assert output(capsys) == 'Found no commit with that message.\n'

    def test_rm_and_status(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'a')
        run('rm', 'A')
        run('status')

        assert not (repo / 'A').exists()
        assert output(capsys) == (
            '=== Branches ===\n'
            '*master\n'
            '\n'
            '=== Staged Files ===\n'
            '\n'
            '=== Removed Files ===\n'
            'A\n'
            '\n'
            '=== Modifications Not Staged For Commit ===\n'
            '\n'
            '=== Untracked Files ===\n'
            '\n'
        )

    def test_checkout_forms(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'a')
        run('log')
        first_id = commit_ids(output(capsys))[0]

        (repo / 'A').write_text('b\n')
        run('add', 'A')
        run('commit', 'b')

        (repo / 'A').write_text('scratch\n')
        run('checkout', '--', 'A')
        assert (repo / 'A').read_text() == 'b\n'

        run('checkout', first_id[:6], '--', 'A')
        assert (repo / 'A').read_text() == 'a\n'

        run('checkout', '--', 'B')
        run('checkout', first_id[:3], '--', 'A')
        run('checkout', 'nope')
        run('checkout', 'master')
        assert output(capsys) == (
            'File does not exist in that commit.\n'
            'Commit id should contain at least 4 characters.\n'
            'No such branch exists.\n'
            'No need to checkout the current branch.\n'
        )

    def test_branches(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'a')
        run('branch', 'dev')
        run('checkout', 'dev')
        (repo / 'A').write_text('b\n')
        run('add', 'A')
        run('commit', 'b')
        run('checkout', 'master')

        assert (repo / 'A').read_text() == 'a\n'

        run('branch', 'dev')
        run('rm-branch', 'nope')
        run('rm-branch', 'master')
        assert output(capsys) == (
            'A branch with that name already exists.\n'
            'A branch with that name does not exist.\n'
            'Cannot remove the current branch.\n'
        )

        run('rm-branch', 'dev')
        run('status')
        assert '*master\n\n' in output(capsys)

    def test_untracked_in_the_way(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'a')
        run('branch', 'dev')
        run('checkout', 'dev')
        (repo / 'B').write_text('b\n')
        run('add', 'B')
        run('commit', 'add B')
        run('log')
        dev_head = commit_ids(output(capsys))[0]
        run('checkout', 'master')
        (repo / 'B').write_text('mine\n')

        run('checkout', 'dev')
        run('reset', dev_head)
        run('merge', 'dev')

        message = 'There is an untracked file in the way; delete it, or add and commit it first.\n'
        assert output(capsys) == message * 3
        assert (repo / 'B').read_text() == 'mine\n'

    def test_newline_file_name(self, repo, capsys):
        (repo / 'a\nb').write_text('first\n')
        run('add', 'a\nb')
        run('commit', 'nl')
        (repo / 'a\nb').write_text('scratch\n')
        run('checkout', '--', 'a\nb')
        run('log')

        assert (repo / 'a\nb').read_text() == 'first\n'
        assert len(commit_ids(output(capsys))) == 2

    def test_operands_that_look_like_options(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', '--')
        (repo / 'A').write_text('b\n')
        run('add', 'A')
        run('commit', '-x')

        run('find', '--')
        run('find', '-x')
        found = output(capsys).split()

        assert len(found) == 2
        assert found[0] != found[1]

    def test_reset(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'a')
        run('log')
        first_id = commit_ids(output(capsys))[0]
        (repo / 'B').write_text('b\n')
        run('add', 'B')
        run('commit', 'b')

        run('reset', first_id[:8])
        run('log')

        assert commit_ids(output(capsys))[0] == first_id
        assert not (repo / 'B').exists()

        run('reset', 'f' * 40)
        assert output(capsys) == 'No commit with that id exists.\n'


class TestMergeCommand:

    def test_conflict(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'init')
        run('branch', 'dev')
        (repo / 'A').write_text('m\n')
        run('add', 'A')
        run('commit', 'main-side')
        run('checkout', 'dev')
        (repo / 'A').write_text('d\n')
        run('add', 'A')
        run('commit', 'dev-side')
        run('checkout', 'master')
        capsys.readouterr()

        run('merge', 'dev')

        assert output(capsys) == 'Encountered a merge conflict.\n'
        assert (repo / 'A').read_text() == '<<<<<<< HEAD\nm\n=======\nd\n>>>>>>>'

        run('log')
        text = output(capsys)
        assert text.startswith('===\ncommit ')
        assert 'Merge: ' in text.split('\n\n')[0]
        assert 'Merged dev into master' in text

    def test_fast_forward(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'init')
        run('branch', 'dev')
        run('checkout', 'dev')
        (repo / 'B').write_text('b\n')
        run('add', 'B')
        run('commit', 'add B')
        run('global-log')
        commits_before = len(commit_ids(output(capsys)))
        run('log')
        dev_head = commit_ids(output(capsys))[0]
        run('checkout', 'master')

        run('merge', 'dev')

        assert output(capsys) == 'Current branch fast-forwarded.\n'
        assert (repo / '.gitlet' / 'refs' / 'heads' / 'master').read_text() == dev_head
        assert (repo / 'B').read_text() == 'b\n'

        run('global-log')
        assert len(commit_ids(output(capsys))) == commits_before

    def test_ancestor_and_self(self, repo, capsys):
        (repo / 'A').write_text('a\n')
        run('add', 'A')
        run('commit', 'a')
        run('branch', 'dev')
        (repo / 'A').write_text('b\n')
        run('add', 'A')
        run('commit', 'b')

        run('merge', 'dev')
        run('merge', 'master')
        run('merge', 'nope')
        assert output(capsys) == (
            'Given branch is an ancestor of the current branch.\n'
            'Cannot merge a branch with itself.\n'
            'A branch with that name does not exist.\n'
        )

    def test_uncommitted_changes(self, repo, capsys):
        run('branch', 'dev')
        (repo / 'A').write_text('a\n')
        run('add', 'A')

        run('merge', 'dev')

        assert output(capsys) == 'You have uncommitted changes.\n'

    def test_identical_add_then_commit(self, repo, capsys):
        (repo / 'A').write_text('x\n')
        run('add', 'A')
        run('commit', 'init')
        (repo / 'A').write_text('x\n')
        run('add', 'A')
        run('commit', 'noop')

        assert output(capsys) == 'No changes added to the commit.\n'


class TestHelpers:

    def test_format_status(self):
        status = Status(['dev', 'master'], 'master', ['B'], ['A'],
                        ['D (deleted)', 'C (modified)'], ['U'])

        assert format_status(status) == (
            '=== Branches ===\n'
            'dev\n'
            '*master\n'
            '\n'
            '=== Staged Files ===\n'
            'B\n'
            '\n'
            '=== Removed Files ===\n'
            'A\n'
            '\n'
            '=== Modifications Not Staged For Commit ===\n'
            'D (deleted)\n'
            'C (modified)\n'
            '\n'
            '=== Untracked Files ===\n'
            'U\n'
        )

    def test_clock_from_env(self, monkeypatch):
        monkeypatch.setenv('GITLET_FROZEN_TIME', '12.5')
        assert clock_from_env()() == 12.5

        monkeypatch.delenv('GITLET_FROZEN_TIME')
        assert clock_from_env()() > 1_600_000_000

    def test_configure_logging_ignores_unknown_level(self, monkeypatch):
        monkeypatch.setenv('GITLET_LOG_LEVEL', 'chatty')
        with patch('logging.basicConfig') as basic_config:
            configure_logging()
        assert basic_config.call_args.kwargs['level'] == logging.WARNING

    def test_configure_logging_level(self, monkeypatch):
        monkeypatch.setenv('GITLET_LOG_LEVEL', 'debug')
        with patch('logging.basicConfig') as basic_config:
            configure_logging()
        assert basic_config.call_args.kwargs['level'] == logging.DEBUG
