import json
import logging
import sqlite3
from collections import defaultdict
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from src.domain.entities import (
    CONTENT_TYPES,
    Blog,
    Comment,
    ContentItem,
    ContentKind,
    ContentRef,
    Event,
    Like,
    ModerationStatus,
    Project,
    TargetRef,
    User,
    utcnow,
)
from src.domain.errors import DependencyFailure, DomainError, ValidationError

logger = logging.getLogger(__name__)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def _uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


def _placeholders(n: int) -> str:
    return ", ".join("?" * n)


class SQLiteRepoBase:
    """Connection-per-call access with a driver timeout; failures become DependencyFailure."""

    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            logger.error("Cannot open database %s: %s", self.db_path, e)
            raise DependencyFailure("Database unavailable", retryable=True) from e
        try:
            yield conn
            conn.commit()
        except DomainError:
            conn.rollback()
            raise
        except sqlite3.IntegrityError as e:
            # Unique and foreign-key clashes are caller errors, not outages
            conn.rollback()
            logger.info("Constraint violation: %s", e)
            raise ValidationError("Conflicts with an existing record") from e
        except sqlite3.OperationalError as e:
            # Lock timeouts land here
            conn.rollback()
            logger.warning("Database operation failed (retryable): %s", e)
            raise DependencyFailure("Database busy, try again", retryable=True) from e
        except sqlite3.Error as e:
            conn.rollback()
            logger.exception("Database error")
            raise DependencyFailure("Database error") from e
        finally:
            conn.close()

    def ping(self) -> None:
        with self._session() as conn:
            conn.execute("SELECT 1").fetchone()


class SQLiteUserRepo(SQLiteRepoBase):
    def save(self, user: User) -> None:
        try:
            with self._session() as conn:
                conn.execute(
                    """
                    INSERT INTO users (
                        id, registration_number, fullname, username, email,
                        password_hash, role, bio, avatar, skills_json,
                        social_links_json, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        registration_number=excluded.registration_number,
                        fullname=excluded.fullname,
                        username=excluded.username,
                        email=excluded.email,
                        password_hash=excluded.password_hash,
                        role=excluded.role,
                        bio=excluded.bio,
                        avatar=excluded.avatar,
                        skills_json=excluded.skills_json,
                        social_links_json=excluded.social_links_json,
                        updated_at=excluded.updated_at
                """,
                    (
                        str(user.id),
                        user.registration_number,
                        user.fullname,
                        user.username,
                        user.email,
                        user.password_hash,
                        user.role,
                        user.bio,
                        user.avatar,
                        json.dumps(user.skills),
                        json.dumps(user.social_links),
                        user.created_at.isoformat(),
                        user.updated_at.isoformat(),
                    ),
                )
        except ValidationError as e:
            raise ValidationError("User already exists") from e

    def delete(self, user_id: UUID, *, reassign_reviews_to: UUID) -> bool:
        uid = str(user_id)
        with self._session() as conn:
            for kind, table in _TABLES.items():
                owned = f"SELECT id FROM {table} WHERE author_id = ?"
                conn.execute(
                    "DELETE FROM likes WHERE target_kind = 'comment' AND target_id IN "
                    f"(SELECT id FROM comments WHERE target_kind = ? AND target_id IN ({owned}))",
                    (kind, uid),
                )
                conn.execute(
                    f"DELETE FROM likes WHERE target_kind = ? AND target_id IN ({owned})",
                    (kind, uid),
                )
                conn.execute(
                    f"DELETE FROM comments WHERE target_kind = ? AND target_id IN ({owned})",
                    (kind, uid),
                )
            conn.execute(
                "DELETE FROM event_participants WHERE event_id IN "
                "(SELECT id FROM events WHERE author_id = ?) OR user_id = ?",
                (uid, uid),
            )
            for table in _TABLES.values():
                conn.execute(f"DELETE FROM {table} WHERE author_id = ?", (uid,))

            conn.execute(
                "DELETE FROM likes WHERE target_kind = 'comment' AND target_id IN "
                "(SELECT id FROM comments WHERE author_id = ?)",
                (uid,),
            )
            conn.execute("DELETE FROM comments WHERE author_id = ?", (uid,))
            conn.execute("DELETE FROM likes WHERE author_id = ?", (uid,))
            conn.execute("UPDATE events SET winner_id = NULL WHERE winner_id = ?", (uid,))
            for table in (*_TABLES.values(), "comments"):
                conn.execute(
                    f"UPDATE {table} SET reviewer_id = ? WHERE reviewer_id = ?",
                    (str(reassign_reviews_to), uid),
                )
            cur = conn.execute("DELETE FROM users WHERE id = ?", (uid,))
            return cur.rowcount == 1

    def _map_row_to_user(self, row: dict[str, Any]) -> User:
        return User(
            id=UUID(row["id"]),
            registration_number=row["registration_number"],
            fullname=row["fullname"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            role=row["role"],
            bio=row["bio"],
            avatar=row["avatar"],
            skills=json.loads(row["skills_json"]),
            social_links=json.loads(row["social_links_json"]),
            created_at=parse_dt(row["created_at"]) or utcnow(),
            updated_at=parse_dt(row["updated_at"]) or utcnow(),
        )

    def _get_one(self, column: str, value: str) -> User | None:
        with self._session() as conn:
            row = conn.execute(f"SELECT * FROM users WHERE {column} = ?", (value,)).fetchone()
        return self._map_row_to_user(row) if row else None

    def get_by_id(self, user_id: UUID) -> User | None:
        return self._get_one("id", str(user_id))

    def get_by_email(self, email: str) -> User | None:
        return self._get_one("email", email)

    def get_by_username(self, username: str) -> User | None:
        return self._get_one("username", username)

    def get_many(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
        ids = sorted({str(u) for u in user_ids})
        if not ids:
            return {}
        with self._session() as conn:
            rows = conn.execute(
                f"SELECT * FROM users WHERE id IN ({_placeholders(len(ids))})", ids
            ).fetchall()
        users = [self._map_row_to_user(r) for r in rows]
        return {u.id: u for u in users}

    def list_all(self) -> list[User]:
        with self._session() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY username").fetchall()
        return [self._map_row_to_user(r) for r in rows]


# --- Content ---

_TABLES: dict[ContentKind, str] = {"blog": "blogs", "project": "projects", "event": "events"}

# Columns an author may change after creation (besides updated_at).
_EDITABLE: dict[ContentKind, tuple[str, ...]] = {
    "blog": ("title", "body", "tags_json"),
    "project": (
        "title",
        "description",
        "source_link",
        "deployed_link",
        "tech_stack_json",
        "tags_json",
    ),
    "event": (
        "title",
        "description",
        "date",
        "venue",
        "event_type",
        "duration_minutes",
        "tags_json",
    ),
}


def _content_to_row(item: ContentItem) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": str(item.id),
        "author_id": str(item.author_id),
        "title": item.title,
        "tags_json": json.dumps(item.tags),
        "status": item.status,
        "reviewer_id": str(item.reviewer_id) if item.reviewer_id else None,
        "created_at": item.created_at.isoformat(),
        "updated_at": item.updated_at.isoformat(),
    }
    if isinstance(item, Blog):
        row["body"] = item.body
    elif isinstance(item, Project):
        row.update(
            description=item.description,
            source_link=item.source_link,
            deployed_link=item.deployed_link,
            tech_stack_json=json.dumps(item.tech_stack),
        )
    elif isinstance(item, Event):
        row.update(
            description=item.description,
            date=item.date.isoformat(),
            venue=item.venue,
            event_type=item.event_type,
            duration_minutes=item.duration_minutes,
            image_url=item.image_url,
            winner_id=str(item.winner_id) if item.winner_id else None,
        )
    return row


def _row_to_content(
    kind: ContentKind, row: dict[str, Any], participants: list[UUID]
) -> ContentItem:
    fields: dict[str, Any] = {
        "id": UUID(row["id"]),
        "author_id": UUID(row["author_id"]),
        "title": row["title"],
        "tags": json.loads(row["tags_json"]),
        "status": row["status"],
        "reviewer_id": _uuid(row["reviewer_id"]),
        "created_at": parse_dt(row["created_at"]),
        "updated_at": parse_dt(row["updated_at"]),
    }
    if kind == "blog":
        fields["body"] = row["body"]
    elif kind == "project":
        fields.update(
            description=row["description"],
            source_link=row["source_link"],
            deployed_link=row["deployed_link"],
            tech_stack=json.loads(row["tech_stack_json"]),
        )
    else:
        fields.update(
            description=row["description"],
            date=parse_dt(row["date"]),
            venue=row["venue"],
            event_type=row["event_type"],
            duration_minutes=row["duration_minutes"],
            image_url=row["image_url"],
            winner_id=_uuid(row["winner_id"]),
            participants=participants,
        )
    return CONTENT_TYPES[kind].model_validate(fields)


class SQLiteContentRepo(SQLiteRepoBase):
    """Blogs, projects and events; one table per kind, same moderation columns."""

    def _participants(
        self, conn: sqlite3.Connection, event_ids: list[str]
    ) -> dict[str, list[UUID]]:
        by_event: dict[str, list[UUID]] = defaultdict(list)
        if not event_ids:
            return by_event
        rows = conn.execute(
            f"SELECT event_id, user_id FROM event_participants "
            f"WHERE event_id IN ({_placeholders(len(event_ids))}) ORDER BY joined_at, user_id",
            event_ids,
        ).fetchall()
        for r in rows:
            by_event[r["event_id"]].append(UUID(r["user_id"]))
        return by_event

    def _map_rows(
        self, conn: sqlite3.Connection, kind: ContentKind, rows: list[dict[str, Any]]
    ) -> list[ContentItem]:
        participants = (
            self._participants(conn, [r["id"] for r in rows]) if kind == "event" else {}
        )
        return [_row_to_content(kind, r, participants.get(r["id"], [])) for r in rows]

    def add(self, item: ContentItem) -> ContentItem:
        row = _content_to_row(item)
        columns = ", ".join(row)
        with self._session() as conn:
            conn.execute(
                f"INSERT INTO {_TABLES[item.kind]} ({columns}) "
                f"VALUES ({_placeholders(len(row))})",
                list(row.values()),
            )
        return item

    def update(self, item: ContentItem) -> ContentItem:
        row = _content_to_row(item)
        columns = (*_EDITABLE[item.kind], "updated_at")
        assignments = ", ".join(f"{c} = ?" for c in columns)
        with self._session() as conn:
            conn.execute(
                f"UPDATE {_TABLES[item.kind]} SET {assignments} WHERE id = ?",
                [row[c] for c in columns] + [row["id"]],
            )
        return item

    def get(self, ref: ContentRef) -> ContentItem | None:
        with self._session() as conn:
            row = conn.execute(
                f"SELECT * FROM {_TABLES[ref.kind]} WHERE id = ?", (str(ref.id),)
            ).fetchone()
            if not row:
                return None
            return self._map_rows(conn, ref.kind, [row])[0]

    def get_many(self, refs: Iterable[ContentRef]) -> dict[ContentRef, ContentItem]:
        ids_by_kind: dict[ContentKind, set[str]] = defaultdict(set)
        for ref in refs:
            ids_by_kind[ref.kind].add(str(ref.id))
        found: dict[ContentRef, ContentItem] = {}
        with self._session() as conn:
            for kind, ids in ids_by_kind.items():
                rows = conn.execute(
                    f"SELECT * FROM {_TABLES[kind]} WHERE id IN ({_placeholders(len(ids))})",
                    sorted(ids),
                ).fetchall()
                for item in self._map_rows(conn, kind, rows):
                    found[item.ref] = item
        return found

    def list_items(
        self,
        kind: ContentKind,
        *,
        status: ModerationStatus | None = None,
        author_id: UUID | None = None,
        participant_id: UUID | None = None,
    ) -> list[ContentItem]:
        query = f"SELECT * FROM {_TABLES[kind]} WHERE 1=1"
        params: list[str] = []
        if status:
            query += " AND status = ?"
            params.append(status)
        if author_id:
            query += " AND author_id = ?"
            params.append(str(author_id))
        if participant_id:
            if kind != "event":
                return []
            query += " AND id IN (SELECT event_id FROM event_participants WHERE user_id = ?)"
            params.append(str(participant_id))
        query += " ORDER BY created_at DESC"

        with self._session() as conn:
            rows = conn.execute(query, params).fetchall()
            return self._map_rows(conn, kind, rows)

    def set_review(
        self, ref: ContentRef, status: ModerationStatus, reviewer_id: UUID, *, at: datetime
    ) -> bool:
        with self._session() as conn:
            cur = conn.execute(
                f"UPDATE {_TABLES[ref.kind]} SET status = ?, reviewer_id = ?, updated_at = ? "
                "WHERE id = ? AND status = 'PENDING'",
                (status, str(reviewer_id), at.isoformat(), str(ref.id)),
            )
            return cur.rowcount == 1

    def delete(self, ref: ContentRef) -> bool:
        item_id = str(ref.id)
        with self._session() as conn:
            conn.execute(
                "DELETE FROM likes WHERE target_kind = 'comment' AND target_id IN "
                "(SELECT id FROM comments WHERE target_kind = ? AND target_id = ?)",
                (ref.kind, item_id),
            )
            conn.execute(
                "DELETE FROM likes WHERE target_kind = ? AND target_id = ?", (ref.kind, item_id)
            )
            conn.execute(
                "DELETE FROM comments WHERE target_kind = ? AND target_id = ?",
                (ref.kind, item_id),
            )
            if ref.kind == "event":
                conn.execute("DELETE FROM event_participants WHERE event_id = ?", (item_id,))
            cur = conn.execute(f"DELETE FROM {_TABLES[ref.kind]} WHERE id = ?", (item_id,))
            return cur.rowcount == 1

    def add_participant(self, event_id: UUID, user_id: UUID, *, at: datetime) -> None:
        with self._session() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO event_participants (event_id, user_id, joined_at) "
                "VALUES (?, ?, ?)",
                (str(event_id), str(user_id), at.isoformat()),
            )

    def remove_participant(self, event_id: UUID, user_id: UUID, *, at: datetime) -> None:
        with self._session() as conn:
            conn.execute(
                "DELETE FROM event_participants WHERE event_id = ? AND user_id = ?",
                (str(event_id), str(user_id)),
            )
            conn.execute(
                "UPDATE events SET winner_id = NULL, updated_at = ? WHERE id = ? AND winner_id = ?",
                (at.isoformat(), str(event_id), str(user_id)),
            )

    def set_winner(self, event_id: UUID, user_id: UUID | None, *, at: datetime) -> None:
        with self._session() as conn:
            conn.execute(
                "UPDATE events SET winner_id = ?, updated_at = ? WHERE id = ?",
                (str(user_id) if user_id else None, at.isoformat(), str(event_id)),
            )

    def set_image(self, event_id: UUID, image_url: str | None, *, at: datetime) -> None:
        with self._session() as conn:
            conn.execute(
                "UPDATE events SET image_url = ?, updated_at = ? WHERE id = ?",
                (image_url, at.isoformat(), str(event_id)),
            )


# --- Reactions ---


def _row_to_comment(row: dict[str, Any]) -> Comment:
    return Comment(
        id=UUID(row["id"]),
        author_id=UUID(row["author_id"]),
        content=row["content"],
        target=ContentRef(kind=row["target_kind"], id=UUID(row["target_id"])),
        status=row["status"],
        reviewer_id=_uuid(row["reviewer_id"]),
        created_at=parse_dt(row["created_at"]) or utcnow(),
    )


class SQLiteCommentRepo(SQLiteRepoBase):
    def add(self, comment: Comment) -> Comment:
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO comments (
                    id, author_id, content, target_kind, target_id,
                    status, reviewer_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    str(comment.id),
                    str(comment.author_id),
                    comment.content,
                    comment.target.kind,
                    str(comment.target.id),
                    comment.status,
                    str(comment.reviewer_id) if comment.reviewer_id else None,
                    comment.created_at.isoformat(),
                ),
            )
        return comment

    def get(self, comment_id: UUID) -> Comment | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT * FROM comments WHERE id = ?", (str(comment_id),)
            ).fetchone()
        return _row_to_comment(row) if row else None

    def list_for_target(
        self, target: ContentRef, *, status: ModerationStatus | None = None
    ) -> list[Comment]:
        query = "SELECT * FROM comments WHERE target_kind = ? AND target_id = ?"
        params = [target.kind, str(target.id)]
        if status:
            query += " AND status = ?"
            params.append(status)
        query += " ORDER BY created_at ASC"
        with self._session() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_comment(r) for r in rows]

    def list_all(self) -> list[Comment]:
        with self._session() as conn:
            rows = conn.execute("SELECT * FROM comments ORDER BY created_at DESC").fetchall()
        return [_row_to_comment(r) for r in rows]

    def set_review(self, comment_id: UUID, status: ModerationStatus, reviewer_id: UUID) -> bool:
        with self._session() as conn:
            cur = conn.execute(
                "UPDATE comments SET status = ?, reviewer_id = ? "
                "WHERE id = ? AND status = 'PENDING'",
                (status, str(reviewer_id), str(comment_id)),
            )
            return cur.rowcount == 1

    def delete(self, comment_id: UUID) -> bool:
        with self._session() as conn:
            conn.execute(
                "DELETE FROM likes WHERE target_kind = 'comment' AND target_id = ?",
                (str(comment_id),),
            )
            cur = conn.execute("DELETE FROM comments WHERE id = ?", (str(comment_id),))
            return cur.rowcount == 1


def _row_to_like(row: dict[str, Any]) -> Like:
    return Like(
        id=UUID(row["id"]),
        author_id=UUID(row["author_id"]),
        target=TargetRef(kind=row["target_kind"], id=UUID(row["target_id"])),
        created_at=parse_dt(row["created_at"]) or utcnow(),
    )


class SQLiteLikeRepo(SQLiteRepoBase):
    def add(self, like: Like) -> Like:
        with self._session() as conn:
            try:
                conn.execute(
                    "INSERT INTO likes (id, author_id, target_kind, target_id, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        str(like.id),
                        str(like.author_id),
                        like.target.kind,
                        str(like.target.id),
                        like.created_at.isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise ValidationError(f"You already liked this {like.target.kind}") from e
        return like

    def _lookup(
        self, conn: sqlite3.Connection, author_id: UUID, target: TargetRef
    ) -> dict[str, Any] | None:
        return conn.execute(
            "SELECT * FROM likes WHERE author_id = ? AND target_kind = ? AND target_id = ?",
            (str(author_id), target.kind, str(target.id)),
        ).fetchone()

    def find(self, author_id: UUID, target: TargetRef) -> Like | None:
        with self._session() as conn:
            row = self._lookup(conn, author_id, target)
        return _row_to_like(row) if row else None

    def remove(self, author_id: UUID, target: TargetRef) -> Like | None:
        with self._session() as conn:
            row = self._lookup(conn, author_id, target)
            if not row:
                return None
            # A concurrent unlike may have taken the row since the lookup
            cur = conn.execute("DELETE FROM likes WHERE id = ?", (row["id"],))
            if cur.rowcount != 1:
                return None
        return _row_to_like(row)

    def list_for_targets(self, targets: Iterable[TargetRef]) -> list[Like]:
        ids_by_kind: dict[str, set[str]] = defaultdict(set)
        for t in targets:
            ids_by_kind[t.kind].add(str(t.id))
        if not ids_by_kind:
            return []

        clauses = []
        params: list[str] = []
        for kind, ids in sorted(ids_by_kind.items()):
            clauses.append(f"(target_kind = ? AND target_id IN ({_placeholders(len(ids))}))")
            params.append(kind)
            params.extend(sorted(ids))

        with self._session() as conn:
            rows = conn.execute(
                f"SELECT * FROM likes WHERE {' OR '.join(clauses)} ORDER BY created_at",
                params,
            ).fetchall()
        return [_row_to_like(r) for r in rows]
