"""
Tests for the migration reconciler (Reconciler)
"""
import pytest

from fly.database import connect
from fly.errors import MigrationFileError, ScriptError
from fly.migrations.ledger import LedgerStore
from fly.migrations.reconciler import Reconciler


USERS_UP = "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT);"
USERS_DOWN = "DROP TABLE users;"
POSTS_UP = "CREATE TABLE posts (id INTEGER PRIMARY KEY, user_id INTEGER);"
POSTS_DOWN = "DROP TABLE posts;"
TAGS_UP = "CREATE TABLE tags (id INTEGER PRIMARY KEY);\nCREATE INDEX idx_tags ON tags(id);"
TAGS_DOWN = "DROP INDEX idx_tags;\nDROP TABLE tags;"


@pytest.fixture
def three_migrations(write_migration):
    """Three valid migrations creating users, posts and tags."""
    write_migration("0001_users", USERS_UP, USERS_DOWN)
    write_migration("0002_posts", POSTS_UP, POSTS_DOWN)
    write_migration("0003_tags", TAGS_UP, TAGS_DOWN)
    return ["0001_users", "0002_posts", "0003_tags"]


@pytest.fixture
def lines():
    """Collected progress lines."""
    return []


@pytest.fixture
def reconciler(conn, ledger, migrations_dir, lines):
    return Reconciler(conn, ledger, migrations_dir, echo=lines.append)


class TestPending:
    """Tests for pending migration detection"""

    def test_pending_is_directory_minus_ledger(self, reconciler, ledger, conn, write_migration):
        """Test that applied ids are excluded from pending"""
        write_migration("0001_init")
        write_migration("0002_add_users")
        ledger.register("0001_init")
        conn.commit()

        assert reconciler.pending() == ["0002_add_users"]

    def test_pending_sorted(self, reconciler, write_migration):
        """Test that pending ids come back in serial order"""
        write_migration("0003_c")
        write_migration("0001_a")
        write_migration("0002_b")

        assert reconciler.pending() == ["0001_a", "0002_b", "0003_c"]

    def test_pending_empty_directory(self, reconciler):
        """Test that an empty directory has nothing pending"""
        assert reconciler.pending() == []


class TestApplyPending:
    """Tests for the "up" batch"""

    def test_applies_all_in_order(self, reconciler, ledger, conn, three_migrations, lines, table_names):
        """Test applying every pending migration"""
        applied = reconciler.apply_pending()

        assert applied == three_migrations
        assert lines == ["up 0001_users", "up 0002_posts", "up 0003_tags"]
        assert set(ledger.applied_ids()) == set(three_migrations)
        assert {"users", "posts", "tags"} <= set(table_names(conn))

    def test_second_run_is_noop(self, reconciler, ledger, three_migrations, lines):
        """Test that running up twice applies nothing the second time"""
        reconciler.apply_pending()
        lines.clear()

        assert reconciler.apply_pending() == []
        assert lines == []
        assert all(ledger.is_applied(migration_id) for migration_id in three_migrations)

    def test_applies_only_new(self, reconciler, ledger, write_migration, lines):
        """Test that later migrations are picked up on a later run"""
        write_migration("0001_users", USERS_UP, USERS_DOWN)
        reconciler.apply_pending()
        write_migration("0002_posts", POSTS_UP, POSTS_DOWN)
        lines.clear()

        assert reconciler.apply_pending() == ["0002_posts"]
        assert lines == ["up 0002_posts"]

    def test_committed(self, reconciler, db_path, three_migrations):
        """Test that applied migrations are visible from another connection"""
        reconciler.apply_pending()

        other = connect(db_path)
        try:
            assert LedgerStore(other).applied_ids() == sorted(three_migrations)
        finally:
            other.close()

    def test_failure_rolls_back_whole_batch(self, reconciler, ledger, conn, write_migration, table_names):
        """Test that a broken script in the middle leaves nothing applied"""
        write_migration("0001_users", USERS_UP, USERS_DOWN)
        write_migration("0002_broken", "CREATE TABL broken (id INTEGER);", "")
        write_migration("0003_tags", TAGS_UP, TAGS_DOWN)

        with pytest.raises(ScriptError) as exc_info:
            reconciler.apply_pending()

        assert "0002_broken.up.sql" in str(exc_info.value)
        assert ledger.list_applied() == []
        assert "users" not in table_names(conn)
        assert "tags" not in table_names(conn)

    def test_failure_keeps_earlier_batches(self, reconciler, ledger, conn, write_migration, table_names):
        """Test that a failed batch does not undo previously committed ones"""
        write_migration("0001_users", USERS_UP, USERS_DOWN)
        reconciler.apply_pending()
        write_migration("0002_broken", "NOT SQL AT ALL;", "")

        with pytest.raises(ScriptError):
            reconciler.apply_pending()

        assert ledger.applied_ids() == ["0001_users"]
        assert "users" in table_names(conn)

    def test_dry_run_applies_nothing(self, reconciler, ledger, conn, three_migrations, lines, table_names):
        """Test that dry run reports without executing"""
        result = reconciler.apply_pending(dry_run=True)

        assert result == three_migrations
        assert lines == ["pending 0001_users", "pending 0002_posts", "pending 0003_tags"]
        assert ledger.list_applied() == []
        assert "users" not in table_names(conn)

    def test_missing_directory(self, conn, ledger, tmp_path):
        """Test that a missing source directory is a file error"""
        reconciler = Reconciler(conn, ledger, tmp_path / "nope")
        with pytest.raises(MigrationFileError):
            reconciler.apply_pending()

    def test_without_echo(self, conn, ledger, migrations_dir, write_migration):
        """Test that the echo callback is optional"""
        write_migration("0001_users", USERS_UP, USERS_DOWN)
        reconciler = Reconciler(conn, ledger, migrations_dir)
        assert reconciler.apply_pending() == ["0001_users"]


class TestRevertLast:
    """Tests for the "down" batch"""

    def test_reverts_one_by_default(self, reconciler, ledger, three_migrations, lines):
        """Test that down reverts only the most recent migration"""
        reconciler.apply_pending()
        lines.clear()

        assert reconciler.revert_last() == ["0003_tags"]
        assert lines == ["down 0003_tags"]
        assert ledger.applied_ids() == ["0001_users", "0002_posts"]

    def test_reverts_most_recent_first(self, reconciler, ledger, three_migrations, lines):
        """Test that several migrations are reverted newest first"""
        reconciler.apply_pending()
        lines.clear()

        assert reconciler.revert_last(2) == ["0003_tags", "0002_posts"]
        assert lines == ["down 0003_tags", "down 0002_posts"]
        assert ledger.applied_ids() == ["0001_users"]

    def test_full_round_trip(self, reconciler, ledger, conn, three_migrations, table_names):
        """Test that up then down N restores the original schema"""
        before = table_names(conn)
        reconciler.apply_pending()

        reverted = reconciler.revert_last(len(three_migrations))

        assert reverted == list(reversed(three_migrations))
        assert ledger.list_applied() == []
        assert table_names(conn) == before

    def test_count_larger_than_applied(self, reconciler, ledger, write_migration):
        """Test that asking for too many reverts all without error"""
        write_migration("0001_users", USERS_UP, USERS_DOWN)
        write_migration("0002_posts", POSTS_UP, POSTS_DOWN)
        reconciler.apply_pending()

        assert reconciler.revert_last(10) == ["0002_posts", "0001_users"]
        assert ledger.list_applied() == []
        assert reconciler.revert_last(10) == []

    def test_nothing_applied(self, reconciler, lines):
        """Test that down on an empty ledger does nothing"""
        assert reconciler.revert_last() == []
        assert lines == []

    def test_invalid_count(self, reconciler):
        """Test that a count below one is rejected"""
        with pytest.raises(ValueError):
            reconciler.revert_last(0)

    def test_order_follows_applied_time(self, reconciler, ledger, conn, write_migration):
        """Test that down follows the ledger's time order rather than id order"""
        write_migration("0001_users", USERS_UP, USERS_DOWN)
        write_migration("0002_posts", POSTS_UP, POSTS_DOWN)
        reconciler.apply_pending()
        conn.execute("UPDATE migration SET applied = '2030-01-01 00:00:00' WHERE id = '0001_users'")
        conn.execute("UPDATE migration SET applied = '2020-01-01 00:00:00' WHERE id = '0002_posts'")
        conn.commit()

        assert reconciler.revert_last() == ["0001_users"]

    def test_failure_rolls_back_whole_batch(self, reconciler, ledger, conn, write_migration, table_names):
        """Test that a broken down-script leaves every migration applied"""
        write_migration("0001_users", USERS_UP, USERS_DOWN)
        write_migration("0002_posts", POSTS_UP, "DROP TABLE does_not_exist;")
        write_migration("0003_tags", TAGS_UP, TAGS_DOWN)
        reconciler.apply_pending()

        with pytest.raises(ScriptError) as exc_info:
            reconciler.revert_last(3)

        assert "0002_posts.down.sql" in str(exc_info.value)
        assert sorted(ledger.applied_ids()) == ["0001_users", "0002_posts", "0003_tags"]
        assert "tags" in table_names(conn)

    def test_missing_down_script(self, reconciler, ledger, migrations_dir, write_migration):
        """Test that a deleted down-script aborts the batch"""
        write_migration("0001_users", USERS_UP, USERS_DOWN)
        reconciler.apply_pending()
        (migrations_dir / "0001_users.down.sql").unlink()

        with pytest.raises(MigrationFileError):
            reconciler.revert_last()

        assert ledger.applied_ids() == ["0001_users"]
