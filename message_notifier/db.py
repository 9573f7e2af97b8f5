"""SQLite database operations for messages, pending pushes and threads."""

import sqlite3
from typing import Iterable, Optional, Sequence, Tuple


def init_db(db_path: str) -> sqlite3.Connection:
    """
    Initialize the database and create tables if they don't exist.

    Args:
        db_path: Path to the SQLite database file, or ":memory:".

    Returns:
        A connection to the database.
    """
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS threads (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            recipient_addresses TEXT NOT NULL UNIQUE,
            read INTEGER NOT NULL DEFAULT 1
        );
        CREATE TABLE IF NOT EXISTS messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            thread_id INTEGER NOT NULL DEFAULT -1,
            sender TEXT NOT NULL,
            recipients TEXT NOT NULL,
            body TEXT,
            image TEXT,
            date_received INTEGER NOT NULL DEFAULT 0,
            read INTEGER NOT NULL DEFAULT 0
        );
        CREATE TABLE IF NOT EXISTS push (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            source TEXT NOT NULL,
            destinations TEXT NOT NULL DEFAULT '',
            timestamp INTEGER NOT NULL DEFAULT 0
        );
        CREATE TABLE IF NOT EXISTS contacts (
            address TEXT PRIMARY KEY,
            name TEXT,
            photo_uri TEXT
        );
        CREATE TABLE IF NOT EXISTS recipient_preferences (
            address TEXT PRIMARY KEY,
            silence_until INTEGER NOT NULL DEFAULT 0
        );
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        );
    """)
    conn.commit()
    return conn


def _join(addresses: Iterable[str]) -> str:
    return ",".join(addresses)


def _thread_key(addresses: Iterable[str]) -> str:
    """Threads are keyed by their sorted, de-duplicated member addresses."""
    return _join(sorted(set(addresses)))


def get_or_create_thread_id(conn: sqlite3.Connection, addresses: Sequence[str]) -> int:
    """
    Find the thread for a set of participants, creating it if missing.

    Args:
        conn: Database connection.
        addresses: Participant addresses, in any order.

    Returns:
        The thread id.
    """
    key = _thread_key(addresses)
    row = conn.execute(
        "SELECT id FROM threads WHERE recipient_addresses = ?", (key,)
    ).fetchone()
    if row:
        return row[0]

    cursor = conn.execute(
        "INSERT INTO threads (recipient_addresses) VALUES (?)", (key,)
    )
    conn.commit()
    return cursor.lastrowid


def get_thread_addresses(conn: sqlite3.Connection, thread_id: int) -> Optional[Tuple[str, ...]]:
    """Return the participant addresses of a thread, or None if it doesn't exist."""
    row = conn.execute(
        "SELECT recipient_addresses FROM threads WHERE id = ?", (thread_id,)
    ).fetchone()
    if not row:
        return None
    return tuple(address for address in row[0].split(",") if address)


def set_thread_read(conn: sqlite3.Connection, thread_id: int) -> None:
    """Mark a thread and all of its messages as read."""
    conn.execute("UPDATE messages SET read = 1 WHERE thread_id = ?", (thread_id,))
    conn.execute("UPDATE threads SET read = 1 WHERE id = ?", (thread_id,))
    conn.commit()


def insert_message(
    conn: sqlite3.Connection,
    sender: str,
    recipients: Sequence[str],
    thread_id: int,
    body: Optional[str],
    date_received: int,
    image: Optional[str] = None,
) -> int:
    """
    Store an incoming message as unread.

    Returns:
        The new message id.
    """
    cursor = conn.execute(
        "INSERT INTO messages (thread_id, sender, recipients, body, image, date_received) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (thread_id, sender, _join(recipients), body, image, date_received),
    )
    if thread_id != -1:
        conn.execute("UPDATE threads SET read = 0 WHERE id = ?", (thread_id,))
    conn.commit()
    return cursor.lastrowid


def get_unread(conn: sqlite3.Connection) -> sqlite3.Cursor:
    """Open a cursor over unread messages, most recent first."""
    return conn.execute(
        "SELECT id, sender, recipients, thread_id, body, image, date_received "
        "FROM messages WHERE read = 0 ORDER BY date_received DESC, id DESC"
    )


def insert_push(
    conn: sqlite3.Connection,
    source: str,
    destinations: Sequence[str],
    timestamp: int,
) -> int:
    """
    Queue a push message that has not been decrypted yet.

    Returns:
        The new pending push id.
    """
    cursor = conn.execute(
        "INSERT INTO push (source, destinations, timestamp) VALUES (?, ?, ?)",
        (source, _join(destinations), timestamp),
    )
    conn.commit()
    return cursor.lastrowid


def get_pending(conn: sqlite3.Connection) -> sqlite3.Cursor:
    """Open a cursor over pending push messages, in arrival order."""
    return conn.execute(
        "SELECT id, source, destinations, timestamp FROM push ORDER BY id"
    )


def get_contact(conn: sqlite3.Connection, address: str) -> Optional[Tuple[Optional[str], Optional[str]]]:
    """Return (name, photo_uri) for an address, or None if unknown."""
    row = conn.execute(
        "SELECT name, photo_uri FROM contacts WHERE address = ?", (address,)
    ).fetchone()
    return (row[0], row[1]) if row else None


def set_contact(
    conn: sqlite3.Connection,
    address: str,
    name: Optional[str],
    photo_uri: Optional[str] = None,
) -> None:
    """Create or replace a contact entry."""
    conn.execute(
        "INSERT OR REPLACE INTO contacts (address, name, photo_uri) VALUES (?, ?, ?)",
        (address, name, photo_uri),
    )
    conn.commit()


def get_silence_until(conn: sqlite3.Connection, address: str) -> int:
    """Return the epoch millis a recipient is muted until, 0 if never."""
    row = conn.execute(
        "SELECT silence_until FROM recipient_preferences WHERE address = ?", (address,)
    ).fetchone()
    return row[0] if row else 0


def set_silence_until(conn: sqlite3.Connection, address: str, until_millis: int) -> None:
    """Mute notifications from a recipient until the given instant."""
    conn.execute(
        "INSERT OR REPLACE INTO recipient_preferences (address, silence_until) VALUES (?, ?)",
        (address, until_millis),
    )
    conn.commit()


def get_meta(conn: sqlite3.Connection, key: str) -> Optional[str]:
    """
    Get a metadata value from the database.

    Args:
        conn: Database connection.
        key: Metadata key.

    Returns:
        The metadata value, or None if not found.
    """
    cursor = conn.execute("SELECT value FROM meta WHERE key = ?", (key,))
    row = cursor.fetchone()
    return row[0] if row else None


def set_meta(conn: sqlite3.Connection, key: str, value: str) -> None:
    """
    Set a metadata value in the database.

    Args:
        conn: Database connection.
        key: Metadata key.
        value: Metadata value.
    """
    conn.execute(
        "INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)",
        (key, value)
    )
    conn.commit()
