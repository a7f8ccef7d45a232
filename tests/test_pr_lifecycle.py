"""
Tests for LifecycleManager (NEW and EXISTING pull request paths).
"""

import pytest

from playbook.core.exceptions import ConflictError, InvalidChangeSetError, NotFoundError
from playbook.core.pr.service import LifecycleManager, WriteStrategy, derive_branch_name
from playbook.core.sync.models import ChangeSet, SyncStatus


@pytest.fixture
def seeded(store, repo):
    store.seed(repo, "main", {"docs/specs/old.md": "old", "README.md": "hi"})
    return store


def propose(manager, repo, cs, **kwargs):
    kwargs.setdefault("base_branch", "main")
    kwargs.setdefault("commit_message", "docs: add")
    kwargs.setdefault("pr_title", "docs: Add")
    return manager.propose(repo, cs, **kwargs)


class TestDeriveBranchName:
    def test_from_first_path(self):
        cs = ChangeSet.build({"docs/specs/Auth Flow.md": "x"})

        assert derive_branch_name(cs) == "playbook/auth-flow"

    def test_empty_change_set(self):
        with pytest.raises(InvalidChangeSetError):
            derive_branch_name(ChangeSet.build({}))


class TestNewPath:
    """No PR number: branch, commit, open PR."""

    def test_creates_branch_commit_and_pr(self, seeded, repo):
        manager = LifecycleManager(seeded)
        cs = ChangeSet.build({"docs/specs/new.md": "# New"})

        result = propose(manager, repo, cs, branch_name="docs/add-spec-new", pr_body="body")

        assert result.status == SyncStatus.COMMITTED
        assert result.branch == "docs/add-spec-new"
        assert result.pr_number == 1
        assert result.pr_url == repo.pull_url(1)
        pr = seeded.pulls[(repo.full_name, 1)]
        assert (pr.head_ref, pr.base_ref, pr.body) == ("docs/add-spec-new", "main", "body")
        assert seeded.files(repo, "docs/add-spec-new")["docs/specs/new.md"] == "# New"
        assert "docs/specs/new.md" not in seeded.files(repo, "main")

    def test_branch_derived_when_not_given(self, seeded, repo):
        result = propose(LifecycleManager(seeded), repo, ChangeSet.build({"docs/x.md": "x"}))

        assert result.branch == "playbook/x"

    def test_each_call_opens_a_new_pr(self, seeded, repo):
        manager = LifecycleManager(seeded)

        first = propose(manager, repo, ChangeSet.build({"a.md": "a"}), branch_name="b1")
        second = propose(manager, repo, ChangeSet.build({"b.md": "b"}), branch_name="b2")

        assert first.pr_number != second.pr_number

    def test_empty_change_set_rejected_before_branching(self, seeded, repo):
        with pytest.raises(InvalidChangeSetError):
            propose(LifecycleManager(seeded), repo, ChangeSet.build({}), branch_name="b")

        assert seeded.count("create_branch") == 0

    def test_no_pr_when_nothing_changes(self, seeded, repo):
        cs = ChangeSet.build({"README.md": "hi"})

        with pytest.raises(InvalidChangeSetError, match="Nothing to propose"):
            propose(LifecycleManager(seeded), repo, cs, branch_name="b")

        assert seeded.count("create_pull_request") == 0

    def test_no_pr_on_conflict(self, seeded, repo):
        manager = LifecycleManager(seeded)

        def interleave():
            seeded.before_update_ref = None
            manager.synchronizer.sync(repo, "b", ChangeSet.build({"z.md": "z"}), "other")

        seeded.before_update_ref = interleave
        result = propose(manager, repo, ChangeSet.build({"a.md": "a"}), branch_name="b")

        assert result.status == SyncStatus.CONFLICT
        assert result.pr_number is None
        assert seeded.count("create_pull_request") == 0

    def test_missing_base_branch(self, seeded, repo):
        with pytest.raises(NotFoundError):
            propose(
                LifecycleManager(seeded),
                repo,
                ChangeSet.build({"a.md": "a"}),
                base_branch="develop",
                branch_name="b",
            )


class TestExistingPath:
    """PR number given: advance its head branch, open nothing."""

    def test_commits_to_pr_head_branch(self, seeded, repo):
        manager = LifecycleManager(seeded)
        opened = propose(manager, repo, ChangeSet.build({"a.md": "v1"}), branch_name="feature")

        result = propose(
            manager, repo, ChangeSet.build({"a.md": "v2"}), pr_number=opened.pr_number
        )

        assert result.status == SyncStatus.COMMITTED
        assert result.pr_number == opened.pr_number
        assert result.pr_url == repo.pull_url(opened.pr_number)
        assert result.branch == "feature"
        assert seeded.files(repo, "feature")["a.md"] == "v2"
        assert seeded.count("create_pull_request") == 1

    def test_branch_name_ignored_for_existing_pr(self, seeded, repo):
        manager = LifecycleManager(seeded)
        opened = propose(manager, repo, ChangeSet.build({"a.md": "v1"}), branch_name="feature")

        propose(
            manager,
            repo,
            ChangeSet.build({"a.md": "v2"}),
            pr_number=opened.pr_number,
            branch_name="ignored",
        )

        assert ("acme/docs", "ignored") not in seeded.refs
        assert seeded.count("create_branch") == 1

    def test_unknown_pr(self, seeded, repo):
        with pytest.raises(NotFoundError):
            propose(LifecycleManager(seeded), repo, ChangeSet.build({"a.md": "a"}), pr_number=99)

    def test_unchanged_update_keeps_pr(self, seeded, repo):
        manager = LifecycleManager(seeded)
        opened = propose(manager, repo, ChangeSet.build({"a.md": "v1"}), branch_name="feature")

        result = propose(
            manager, repo, ChangeSet.build({"a.md": "v1"}), pr_number=opened.pr_number
        )

        assert result.status == SyncStatus.UNCHANGED
        assert result.pr_number == opened.pr_number


class TestSingleFileStrategy:
    """Content-API writes: look up the id, then one create-or-update."""

    def test_rejects_multiple_files(self, seeded, repo):
        cs = ChangeSet.build({"a.md": "a", "b.md": "b"})

        with pytest.raises(InvalidChangeSetError, match="exactly one file"):
            propose(LifecycleManager(seeded), repo, cs, strategy=WriteStrategy.SINGLE_FILE)

        assert seeded.calls == []

    def test_new_pr_with_new_file(self, seeded, repo):
        result = propose(
            LifecycleManager(seeded),
            repo,
            ChangeSet.build({"patterns/retry.md": "# Retry"}),
            branch_name="suggest",
            strategy=WriteStrategy.SINGLE_FILE,
        )

        assert result.status == SyncStatus.COMMITTED
        assert result.pr_number == 1
        assert seeded.count("put_file") == 1
        assert seeded.count("create_tree") == 0
        assert seeded.files(repo, "suggest")["patterns/retry.md"] == "# Retry"

    def test_overwrite_passes_existing_id(self, seeded, repo):
        manager = LifecycleManager(seeded)
        opened = propose(
            manager,
            repo,
            ChangeSet.build({"patterns/retry.md": "v1"}),
            branch_name="suggest",
            strategy=WriteStrategy.SINGLE_FILE,
        )

        result = propose(
            manager,
            repo,
            ChangeSet.build({"patterns/retry.md": "v2"}),
            pr_number=opened.pr_number,
            strategy=WriteStrategy.SINGLE_FILE,
        )

        assert result.status == SyncStatus.COMMITTED
        assert seeded.files(repo, "suggest")["patterns/retry.md"] == "v2"

    def test_same_content_is_unchanged(self, seeded, repo):
        manager = LifecycleManager(seeded)

        result = manager.write_single_file(
            repo, "main", ChangeSet.build({"README.md": "hi"}), "m"
        )

        assert result.status == SyncStatus.UNCHANGED
        assert seeded.count("put_file") == 0

    def test_stale_id_raises_conflict(self, seeded, repo, monkeypatch):
        manager = LifecycleManager(seeded)
        original = seeded.get_file

        def stale(repo, path, ref):
            found = original(repo, path, ref)
            return found.model_copy(update={"sha": "stale"})

        monkeypatch.setattr(seeded, "get_file", stale)

        with pytest.raises(ConflictError):
            manager.write_single_file(repo, "main", ChangeSet.build({"README.md": "new"}), "m")
