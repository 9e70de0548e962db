"""SQLite implementation of the document store."""

import json
import logging
import secrets
import sqlite3
import time
import uuid
from collections.abc import Iterator
from contextlib import closing, contextmanager
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from ....core.domain import (
    Application,
    Bill,
    ChatMessage,
    Citizen,
    CitizenProfile,
    Conversation,
    EligibilityCriterion,
    Grievance,
    GrievanceStatus,
    KnowledgeCategory,
    KnowledgeEntry,
    MessageRole,
    Payment,
    PaymentStatus,
    Policy,
    QuestionType,
    SavedAnswer,
    Scheme,
    SchemeApplication,
    ServiceAccount,
    Tariff,
)
from ....core.domain.exceptions import PartialBatchInvalidError, StoreError
from ....core.domain.utils import serialize_embedding
from ....core.ports.document_store_port import DocumentStorePort

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS knowledge_entries (
    id TEXT PRIMARY KEY,
    category TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    department TEXT,
    embedding TEXT,
    metadata TEXT NOT NULL DEFAULT '{}',
    is_active INTEGER NOT NULL DEFAULT 1,
    source_url TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_knowledge_category ON knowledge_entries(category, is_active);

CREATE TABLE IF NOT EXISTS schemes (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    department TEXT NOT NULL,
    description TEXT NOT NULL,
    eligibility TEXT,
    required_documents TEXT NOT NULL DEFAULT '[]',
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS eligibility_criteria (
    id TEXT PRIMARY KEY,
    scheme_id TEXT NOT NULL REFERENCES schemes(id) ON DELETE CASCADE,
    question_text TEXT NOT NULL,
    question_type TEXT NOT NULL,
    weightage INTEGER NOT NULL DEFAULT 0,
    sort_order INTEGER NOT NULL DEFAULT 0,
    options TEXT NOT NULL DEFAULT '[]',
    validation_rules TEXT NOT NULL DEFAULT '{}',
    is_required INTEGER NOT NULL DEFAULT 1
);
CREATE INDEX IF NOT EXISTS idx_criteria_scheme ON eligibility_criteria(scheme_id, sort_order);

CREATE TABLE IF NOT EXISTS policies (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    department TEXT NOT NULL,
    description TEXT NOT NULL,
    category TEXT,
    effective_from TEXT,
    document_url TEXT
);

CREATE TABLE IF NOT EXISTS tariffs (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    department TEXT NOT NULL,
    rate REAL NOT NULL,
    unit TEXT NOT NULL,
    description TEXT,
    category TEXT,
    effective_from TEXT
);

CREATE TABLE IF NOT EXISTS citizens (
    id TEXT PRIMARY KEY,
    full_name TEXT NOT NULL,
    mobile_number TEXT NOT NULL,
    email TEXT
);

CREATE TABLE IF NOT EXISTS citizen_profiles (
    citizen_id TEXT PRIMARY KEY REFERENCES citizens(id) ON DELETE CASCADE,
    consent_to_save_answers INTEGER NOT NULL DEFAULT 0,
    saved_answers TEXT NOT NULL DEFAULT '{}',
    details TEXT NOT NULL DEFAULT '{}'
);

CREATE TABLE IF NOT EXISTS service_accounts (
    id TEXT PRIMARY KEY,
    citizen_id TEXT NOT NULL REFERENCES citizens(id) ON DELETE CASCADE,
    department TEXT NOT NULL,
    consumer_id TEXT NOT NULL,
    address TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS bills (
    id TEXT PRIMARY KEY,
    account_id TEXT NOT NULL REFERENCES service_accounts(id) ON DELETE CASCADE,
    amount REAL NOT NULL,
    due_date TEXT NOT NULL,
    is_paid INTEGER NOT NULL DEFAULT 0,
    paid_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_bills_account ON bills(account_id, is_paid);

CREATE TABLE IF NOT EXISTS payments (
    id TEXT PRIMARY KEY,
    citizen_id TEXT NOT NULL,
    bill_id TEXT NOT NULL REFERENCES bills(id),
    amount REAL NOT NULL,
    status TEXT NOT NULL,
    receipt_no TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS applications (
    id TEXT PRIMARY KEY,
    citizen_id TEXT NOT NULL,
    department TEXT NOT NULL,
    service_type TEXT NOT NULL,
    status TEXT NOT NULL,
    submitted_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS scheme_applications (
    id TEXT PRIMARY KEY,
    citizen_id TEXT NOT NULL,
    scheme_id TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TEXT NOT NULL,
    submitted_at TEXT
);

CREATE TABLE IF NOT EXISTS grievances (
    id TEXT PRIMARY KEY,
    citizen_id TEXT NOT NULL,
    department TEXT NOT NULL,
    category TEXT,
    description TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS conversations (
    id TEXT PRIMARY KEY,
    citizen_id TEXT,
    is_anonymous INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    last_message_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS chat_messages (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
    role TEXT NOT NULL,
    content TEXT NOT NULL,
    metadata TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_messages_conversation ON chat_messages(conversation_id, seq);
"""

BATCH_INVALID_MESSAGE = "Some bills are invalid, already paid, or do not belong to you."


def _now() -> datetime:
    return datetime.now(UTC)


def _new_id() -> str:
    return str(uuid.uuid4())


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _loads(value: str | None, default: Any) -> Any:
    if not value:
        return default
    return json.loads(value)


def receipt_number() -> str:
    return f"REC-{int(time.time() * 1000)}-{secrets.randbelow(1000)}"


class SQLiteDocumentStore(DocumentStorePort):
    """Document store backed by a single SQLite file.

    Every operation opens its own connection and transaction, so one store
    instance can be shared across request threads.
    """

    def __init__(self, db_path: str | Path = "data/suvidha.db") -> None:
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        try:
            with closing(sqlite3.connect(self.db_path)) as conn:
                conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            logger.error("Failed to initialize database: %s", e)
            raise StoreError(
                "Failed to initialize database", cause=e, context={"path": str(self.db_path)}
            ) from e

    @contextmanager
    def _transaction(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """Connection inside one transaction; committed on success, rolled back otherwise."""
        conn = sqlite3.connect(self.db_path, isolation_level=None, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error("Database operation failed: %s", e)
            raise StoreError(f"Database operation failed: {e}", cause=e) from e
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Knowledge base
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> KnowledgeEntry:
        return KnowledgeEntry(
            entry_id=row["id"],
            category=KnowledgeCategory(row["category"]),
            title=row["title"],
            content=row["content"],
            department=row["department"],
            embedding=row["embedding"],
            metadata=_loads(row["metadata"], {}),
            is_active=bool(row["is_active"]),
            source_url=row["source_url"],
        )

    def list_knowledge_entries(
        self, category: str | None = None, active_only: bool = True
    ) -> list[KnowledgeEntry]:
        query = "SELECT * FROM knowledge_entries WHERE 1 = 1"
        params: list[Any] = []
        if category:
            query += " AND category = ?"
            params.append(KnowledgeCategory(category).value)
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY created_at, rowid"

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def add_knowledge_entry(self, entry: KnowledgeEntry) -> str:
        embedding = entry.embedding
        if isinstance(embedding, list):
            embedding = serialize_embedding(embedding)
        entry_id = entry.entry_id or _new_id()

        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO knowledge_entries
                    (id, category, title, content, department, embedding, metadata,
                     is_active, source_url, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry_id,
                    KnowledgeCategory(entry.category).value,
                    entry.title,
                    entry.content,
                    entry.department,
                    embedding,
                    json.dumps(entry.metadata or {}, default=str),
                    int(entry.is_active),
                    entry.source_url,
                    _now().isoformat(),
                ),
            )
        return entry_id

    def clear_knowledge_base(self) -> int:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM knowledge_entries")
            return cursor.rowcount

    def count_knowledge_entries(self) -> dict[str, int]:
        """Active entry counts per category."""
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT category, COUNT(*) AS n FROM knowledge_entries
                WHERE is_active = 1 GROUP BY category
                """
            ).fetchall()
        return {row["category"]: row["n"] for row in rows}

    # ------------------------------------------------------------------
    # Schemes, policies, tariffs
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_criterion(row: sqlite3.Row) -> EligibilityCriterion:
        return EligibilityCriterion(
            criterion_id=row["id"],
            scheme_id=row["scheme_id"],
            question_text=row["question_text"],
            question_type=QuestionType.parse(row["question_type"]),
            weightage=row["weightage"],
            order=row["sort_order"],
            options=_loads(row["options"], []),
            validation_rules=_loads(row["validation_rules"], {}),
            is_required=bool(row["is_required"]),
        )

    def _load_schemes(self, conn: sqlite3.Connection, rows: list[sqlite3.Row]) -> list[Scheme]:
        schemes = []
        for row in rows:
            criteria_rows = conn.execute(
                "SELECT * FROM eligibility_criteria WHERE scheme_id = ? ORDER BY sort_order, rowid",
                (row["id"],),
            ).fetchall()
            schemes.append(
                Scheme(
                    scheme_id=row["id"],
                    title=row["title"],
                    department=row["department"],
                    description=row["description"],
                    eligibility=row["eligibility"],
                    criteria=[self._row_to_criterion(c) for c in criteria_rows],
                    required_documents=_loads(row["required_documents"], []),
                    is_active=bool(row["is_active"]),
                )
            )
        return schemes

    def get_scheme(self, scheme_id: str) -> Scheme | None:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM schemes WHERE id = ?", (scheme_id,)).fetchall()
            schemes = self._load_schemes(conn, rows)
        return schemes[0] if schemes else None

    def find_schemes_by_title(self, fragment: str, limit: int = 3) -> list[Scheme]:
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT * FROM schemes
                WHERE is_active = 1 AND instr(lower(title), lower(?)) > 0
                ORDER BY title LIMIT ?
                """,
                (fragment, limit),
            ).fetchall()
            return self._load_schemes(conn, rows)

    def list_schemes(self) -> list[Scheme]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM schemes WHERE is_active = 1 ORDER BY title").fetchall()
            return self._load_schemes(conn, rows)

    def add_scheme(self, scheme: Scheme) -> str:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO schemes
                    (id, title, department, description, eligibility, required_documents, is_active)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    scheme.scheme_id,
                    scheme.title,
                    scheme.department,
                    scheme.description,
                    scheme.eligibility,
                    json.dumps(scheme.required_documents),
                    int(scheme.is_active),
                ),
            )
            for criterion in scheme.criteria:
                conn.execute(
                    """
                    INSERT INTO eligibility_criteria
                        (id, scheme_id, question_text, question_type, weightage, sort_order,
                         options, validation_rules, is_required)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        criterion.criterion_id,
                        scheme.scheme_id,
                        criterion.question_text,
                        str(getattr(criterion.question_type, "value", criterion.question_type)),
                        criterion.weightage,
                        criterion.order,
                        json.dumps(criterion.options),
                        json.dumps(criterion.validation_rules or {}),
                        int(criterion.is_required),
                    ),
                )
        return scheme.scheme_id

    def list_policies(self) -> list[Policy]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM policies ORDER BY title").fetchall()
        return [
            Policy(
                policy_id=row["id"],
                title=row["title"],
                department=row["department"],
                description=row["description"],
                category=row["category"],
                effective_from=_parse_date(row["effective_from"]),
                document_url=row["document_url"],
            )
            for row in rows
        ]

    def add_policy(self, policy: Policy) -> str:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO policies
                    (id, title, department, description, category, effective_from, document_url)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    policy.policy_id,
                    policy.title,
                    policy.department,
                    policy.description,
                    policy.category,
                    _iso(policy.effective_from),
                    policy.document_url,
                ),
            )
        return policy.policy_id

    def list_tariffs(self) -> list[Tariff]:
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM tariffs ORDER BY department, name").fetchall()
        return [
            Tariff(
                tariff_id=row["id"],
                name=row["name"],
                department=row["department"],
                rate=row["rate"],
                unit=row["unit"],
                description=row["description"],
                category=row["category"],
                effective_from=_parse_date(row["effective_from"]),
            )
            for row in rows
        ]

    def add_tariff(self, tariff: Tariff) -> str:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO tariffs
                    (id, name, department, rate, unit, description, category, effective_from)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    tariff.tariff_id,
                    tariff.name,
                    tariff.department,
                    tariff.rate,
                    tariff.unit,
                    tariff.description,
                    tariff.category,
                    _iso(tariff.effective_from),
                ),
            )
        return tariff.tariff_id

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> ChatMessage:
        return ChatMessage(
            message_id=row["id"],
            conversation_id=row["conversation_id"],
            role=MessageRole(row["role"]),
            content=row["content"],
            created_at=datetime.fromisoformat(row["created_at"]),
            metadata=_loads(row["metadata"], None),
        )

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM conversations WHERE id = ?", (conversation_id,)
            ).fetchone()
            if row is None:
                return None
            messages = conn.execute(
                "SELECT * FROM chat_messages WHERE conversation_id = ? ORDER BY seq",
                (conversation_id,),
            ).fetchall()

        return Conversation(
            conversation_id=row["id"],
            citizen_id=row["citizen_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            last_activity_at=datetime.fromisoformat(row["last_message_at"]),
            messages=[self._row_to_message(m) for m in messages],
        )

    def create_conversation(self, conversation_id: str, citizen_id: str | None = None) -> Conversation:
        now = _now()
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO conversations
                    (id, citizen_id, is_anonymous, created_at, last_message_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (conversation_id, citizen_id, int(citizen_id is None), now.isoformat(), now.isoformat()),
            )
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            raise StoreError("Conversation could not be created", context={"id": conversation_id})
        return conversation

    def append_message(
        self,
        conversation_id: str,
        role: MessageRole,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChatMessage:
        message = ChatMessage(
            message_id=_new_id(),
            conversation_id=conversation_id,
            role=MessageRole(role),
            content=content,
            created_at=_now(),
            metadata=metadata,
        )
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO chat_messages (id, conversation_id, role, content, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    message.message_id,
                    conversation_id,
                    message.role.value,
                    content,
                    json.dumps(metadata, default=str) if metadata is not None else None,
                    message.created_at.isoformat(),
                ),
            )
        return message

    def touch_conversation(self, conversation_id: str) -> None:
        with self._transaction() as conn:
            conn.execute(
                "UPDATE conversations SET last_message_at = ? WHERE id = ?",
                (_now().isoformat(), conversation_id),
            )

    # ------------------------------------------------------------------
    # Citizens
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_profile(row: sqlite3.Row) -> CitizenProfile:
        saved = _loads(row["saved_answers"], {})
        return CitizenProfile(
            citizen_id=row["citizen_id"],
            consent_to_save_answers=bool(row["consent_to_save_answers"]),
            saved_answers={key: SavedAnswer.from_dict(value) for key, value in saved.items()},
            details=_loads(row["details"], {}),
        )

    def get_citizen(self, citizen_id: str) -> Citizen | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM citizens WHERE id = ?", (citizen_id,)).fetchone()
            if row is None:
                return None
            profile_row = conn.execute(
                "SELECT * FROM citizen_profiles WHERE citizen_id = ?", (citizen_id,)
            ).fetchone()
            accounts = conn.execute(
                "SELECT * FROM service_accounts WHERE citizen_id = ? ORDER BY department, rowid",
                (citizen_id,),
            ).fetchall()

        return Citizen(
            citizen_id=row["id"],
            full_name=row["full_name"],
            mobile_number=row["mobile_number"],
            email=row["email"],
            profile=self._row_to_profile(profile_row) if profile_row else None,
            service_accounts=[
                ServiceAccount(
                    account_id=a["id"],
                    citizen_id=a["citizen_id"],
                    department=a["department"],
                    consumer_id=a["consumer_id"],
                    address=a["address"],
                )
                for a in accounts
            ],
        )

    def add_citizen(self, citizen: Citizen) -> str:
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO citizens (id, full_name, mobile_number, email) VALUES (?, ?, ?, ?)",
                (citizen.citizen_id, citizen.full_name, citizen.mobile_number, citizen.email),
            )
            profile = citizen.profile
            if profile is not None:
                conn.execute(
                    """
                    INSERT INTO citizen_profiles
                        (citizen_id, consent_to_save_answers, saved_answers, details)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        citizen.citizen_id,
                        int(profile.consent_to_save_answers),
                        json.dumps({k: v.to_dict() for k, v in profile.saved_answers.items()}),
                        json.dumps(profile.details, default=str),
                    ),
                )
            for account in citizen.service_accounts:
                conn.execute(
                    """
                    INSERT INTO service_accounts (id, citizen_id, department, consumer_id, address)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        account.account_id,
                        citizen.citizen_id,
                        account.department,
                        account.consumer_id,
                        account.address,
                    ),
                )
        return citizen.citizen_id

    def get_profile(self, citizen_id: str) -> CitizenProfile | None:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM citizen_profiles WHERE citizen_id = ?", (citizen_id,)
            ).fetchone()
        return self._row_to_profile(row) if row else None

    def save_answers(self, citizen_id: str, answers: dict[str, SavedAnswer]) -> CitizenProfile:
        with self._transaction(immediate=True) as conn:
            row = conn.execute(
                "SELECT saved_answers FROM citizen_profiles WHERE citizen_id = ?", (citizen_id,)
            ).fetchone()
            merged = _loads(row["saved_answers"], {}) if row else {}
            merged.update({key: answer.to_dict() for key, answer in answers.items()})
            conn.execute(
                """
                INSERT INTO citizen_profiles (citizen_id, consent_to_save_answers, saved_answers)
                VALUES (?, 1, ?)
                ON CONFLICT(citizen_id) DO UPDATE SET
                    consent_to_save_answers = 1,
                    saved_answers = excluded.saved_answers
                """,
                (citizen_id, json.dumps(merged, default=str)),
            )
        logger.info("Saved %d eligibility answers for citizen %s", len(answers), citizen_id)
        profile = self.get_profile(citizen_id)
        if profile is None:
            raise StoreError("Profile could not be saved", context={"citizen_id": citizen_id})
        return profile

    # ------------------------------------------------------------------
    # Bills and payments
    # ------------------------------------------------------------------

    _BILL_SELECT = """
        SELECT b.id, b.account_id, b.amount, b.due_date, b.is_paid,
               a.department, a.consumer_id
        FROM bills b JOIN service_accounts a ON a.id = b.account_id
    """

    @staticmethod
    def _row_to_bill(row: sqlite3.Row) -> Bill:
        return Bill(
            bill_id=row["id"],
            account_id=row["account_id"],
            amount=row["amount"],
            due_date=date.fromisoformat(row["due_date"]),
            is_paid=bool(row["is_paid"]),
            department=row["department"],
            consumer_id=row["consumer_id"],
        )

    def list_bills(
        self,
        citizen_id: str,
        department: str | None = None,
        is_paid: bool | None = None,
        limit: int = 10,
    ) -> list[Bill]:
        query = self._BILL_SELECT + " WHERE a.citizen_id = ?"
        params: list[Any] = [citizen_id]
        if department:
            query += " AND a.department = ?"
            params.append(department)
        if is_paid is not None:
            query += " AND b.is_paid = ?"
            params.append(int(is_paid))
        query += " ORDER BY b.due_date DESC LIMIT ?"
        params.append(limit)

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_bill(row) for row in rows]

    def get_unpaid_bill(self, citizen_id: str, bill_id: str) -> Bill | None:
        with self._transaction() as conn:
            row = conn.execute(
                self._BILL_SELECT + " WHERE b.id = ? AND a.citizen_id = ? AND b.is_paid = 0",
                (bill_id, citizen_id),
            ).fetchone()
        return self._row_to_bill(row) if row else None

    def add_bill(self, bill: Bill) -> str:
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO bills (id, account_id, amount, due_date, is_paid) VALUES (?, ?, ?, ?, ?)",
                (bill.bill_id, bill.account_id, bill.amount, bill.due_date.isoformat(), int(bill.is_paid)),
            )
        return bill.bill_id

    def pay_bills(self, citizen_id: str, bill_ids: list[str]) -> list[Payment]:
        unique_ids = list(dict.fromkeys(bill_ids))
        context = {"citizen_id": citizen_id, "bill_ids": list(bill_ids)}
        if not unique_ids or len(unique_ids) != len(bill_ids):
            raise PartialBatchInvalidError(BATCH_INVALID_MESSAGE, context=context)

        now = _now()
        payments: list[Payment] = []
        placeholders = ", ".join("?" for _ in unique_ids)

        with self._transaction(immediate=True) as conn:
            rows = conn.execute(
                f"""
                SELECT b.id, b.amount FROM bills b
                JOIN service_accounts a ON a.id = b.account_id
                WHERE b.id IN ({placeholders}) AND a.citizen_id = ? AND b.is_paid = 0
                """,
                (*unique_ids, citizen_id),
            ).fetchall()
            if len(rows) != len(unique_ids):
                raise PartialBatchInvalidError(BATCH_INVALID_MESSAGE, context=context)

            amounts = {row["id"]: row["amount"] for row in rows}
            for bill_id in unique_ids:
                conn.execute(
                    "UPDATE bills SET is_paid = 1, paid_at = ? WHERE id = ?",
                    (now.isoformat(), bill_id),
                )
                payment = Payment(
                    payment_id=_new_id(),
                    citizen_id=citizen_id,
                    bill_id=bill_id,
                    amount=amounts[bill_id],
                    status=PaymentStatus.SUCCESS,
                    receipt_no=receipt_number(),
                    created_at=now,
                )
                conn.execute(
                    """
                    INSERT INTO payments
                        (id, citizen_id, bill_id, amount, status, receipt_no, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        payment.payment_id,
                        citizen_id,
                        bill_id,
                        payment.amount,
                        payment.status.value,
                        payment.receipt_no,
                        now.isoformat(),
                    ),
                )
                payments.append(payment)

        logger.info("Paid %d bills for citizen %s", len(payments), citizen_id)
        return payments

    # ------------------------------------------------------------------
    # Applications and grievances
    # ------------------------------------------------------------------

    def list_applications(
        self,
        citizen_id: str,
        department: str | None = None,
        status: str | None = None,
        limit: int = 10,
    ) -> list[Application]:
        query = "SELECT * FROM applications WHERE citizen_id = ?"
        params: list[Any] = [citizen_id]
        if department:
            query += " AND department = ?"
            params.append(department)
        if status:
            query += " AND status = ?"
            params.append(status)
        query += " ORDER BY submitted_at DESC LIMIT ?"
        params.append(limit)

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [
            Application(
                application_id=row["id"],
                citizen_id=row["citizen_id"],
                department=row["department"],
                service_type=row["service_type"],
                status=row["status"],
                submitted_at=datetime.fromisoformat(row["submitted_at"]),
            )
            for row in rows
        ]

    def add_application(self, application: Application) -> str:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO applications (id, citizen_id, department, service_type, status, submitted_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    application.application_id,
                    application.citizen_id,
                    application.department,
                    application.service_type,
                    application.status,
                    application.submitted_at.isoformat(),
                ),
            )
        return application.application_id

    def list_scheme_applications(
        self, citizen_id: str, status: str | None = None, limit: int = 10
    ) -> list[SchemeApplication]:
        query = """
            SELECT sa.*, s.title AS scheme_title FROM scheme_applications sa
            LEFT JOIN schemes s ON s.id = sa.scheme_id
            WHERE sa.citizen_id = ?
        """
        params: list[Any] = [citizen_id]
        if status:
            query += " AND sa.status = ?"
            params.append(status)
        query += " ORDER BY sa.created_at DESC LIMIT ?"
        params.append(limit)

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [
            SchemeApplication(
                application_id=row["id"],
                citizen_id=row["citizen_id"],
                scheme_id=row["scheme_id"],
                status=row["status"],
                created_at=datetime.fromisoformat(row["created_at"]),
                submitted_at=_parse_datetime(row["submitted_at"]),
                scheme_title=row["scheme_title"],
            )
            for row in rows
        ]

    def add_scheme_application(self, application: SchemeApplication) -> str:
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO scheme_applications
                    (id, citizen_id, scheme_id, status, created_at, submitted_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    application.application_id,
                    application.citizen_id,
                    application.scheme_id,
                    application.status,
                    application.created_at.isoformat(),
                    _iso(application.submitted_at),
                ),
            )
        return application.application_id

    def list_grievances(
        self, citizen_id: str, status: str | None = None, limit: int = 10
    ) -> list[Grievance]:
        query = "SELECT * FROM grievances WHERE citizen_id = ?"
        params: list[Any] = [citizen_id]
        if status:
            query += " AND status = ?"
            params.append(status)
        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)

        with self._transaction() as conn:
            rows = conn.execute(query, params).fetchall()
        return [
            Grievance(
                grievance_id=row["id"],
                citizen_id=row["citizen_id"],
                department=row["department"],
                description=row["description"],
                status=row["status"],
                created_at=datetime.fromisoformat(row["created_at"]),
                category=row["category"],
            )
            for row in rows
        ]

    def create_grievance(self, citizen_id: str, department: str, description: str) -> Grievance:
        grievance = Grievance(
            grievance_id=_new_id(),
            citizen_id=citizen_id,
            department=department,
            description=description,
            status=GrievanceStatus.PENDING.value,
            created_at=_now(),
        )
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO grievances (id, citizen_id, department, category, description, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    grievance.grievance_id,
                    citizen_id,
                    department,
                    grievance.category,
                    description,
                    grievance.status,
                    grievance.created_at.isoformat(),
                ),
            )
        logger.info("Grievance %s filed for citizen %s", grievance.grievance_id, citizen_id)
        return grievance
