from datetime import timedelta

from coursework_tracker.store import LocalStore

from conftest import NOW, make_commit


def populated_store(path=None):
    store = LocalStore(path)
    alice = store.add_student("Alice", "alice@example.edu", created_at=NOW)
    bob = store.add_student("Bob", "bob@example.edu", created_at=NOW)
    store.add_repository(alice.id, "alice", "webapp", tech_stack=["react"])
    store.add_repository(bob.id, "bob", "api", is_group=True, contributors=["bob", "eve"])
    return store


class TestLocalStore:
    def test_ids_and_default_url(self):
        store = populated_store()

        assert [s.id for s in store.students] == [1, 2]
        assert [r.id for r in store.repositories] == [1, 2]
        assert store.get_repository(1).repo_url == "https://github.com/alice/webapp"
        assert store.get_repository(2).contributors == ["bob", "eve"]

    def test_commit_upsert_is_idempotent(self):
        store = populated_store()
        commit = make_commit(days_ago=1, sha="a" * 40, repo_id=1)

        assert store.add_commits([commit]) == 1
        assert store.add_commits([make_commit(days_ago=2, sha="a" * 40, repo_id=1)]) == 0
        assert len(store.commits) == 1
        assert store.commits[0].commit_date == NOW - timedelta(days=1)

    def test_same_sha_in_different_repositories(self):
        store = populated_store()

        added = store.add_commits([make_commit(sha="b" * 40, repo_id=1),
                                   make_commit(sha="b" * 40, repo_id=2)])
        assert added == 2

    def test_delete_student_cascades(self):
        store = populated_store()
        store.add_commits([make_commit(repo_id=1), make_commit(repo_id=2)])

        assert store.delete_student(1) is True
        assert store.get_student(1) is None
        assert store.get_repository(1) is None
        assert [c.repo_id for c in store.commits] == [2]
        assert store.delete_student(1) is False

    def test_deleted_repository_commits_can_return(self):
        store = populated_store()
        commit = make_commit(repo_id=1, sha="c" * 40)
        store.add_commits([commit])
        store.delete_repository(1)

        assert store.add_commits([commit]) == 1

    def test_commits_for_student(self):
        store = populated_store()
        store.add_commits([make_commit(repo_id=1), make_commit(repo_id=1), make_commit(repo_id=2)])

        assert len(store.commits_for_student(1)) == 2
        assert len(store.commits_for_repository(2)) == 1
        assert store.commits_for_student(42) == []

    def test_summary(self):
        store = populated_store()
        store.add_commits([make_commit(days_ago=1, repo_id=1), make_commit(days_ago=30, repo_id=1),
                           make_commit(days_ago=-3, repo_id=1)])

        assert store.summary(NOW) == {"students": 2, "repositories": 2, "commits": 3, "active": 1}

    def test_mark_synced(self):
        store = populated_store()
        store.mark_synced(1, NOW)

        assert store.get_repository(1).synced_at == NOW
        assert store.get_repository(2).synced_at is None

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "store.json"
        store = populated_store(path)
        store.add_commits([make_commit(days_ago=1, repo_id=1, sha="d" * 40, lines=42)])
        store.mark_synced(1, NOW)
        assert store.save() == path

        reloaded = LocalStore(path)
        assert [s.name for s in reloaded.students] == ["Alice", "Bob"]
        assert reloaded.get_repository(1).synced_at == NOW
        assert reloaded.commits[0].lines_changed == 42
        assert reloaded.commits[0].commit_date == NOW - timedelta(days=1)
        assert reloaded.add_commits([make_commit(sha="d" * 40, repo_id=1)]) == 0
        assert reloaded.add_student("Carol").id == 3

    def test_save_without_path(self):
        assert LocalStore().save() is None
