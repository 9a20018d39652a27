import sqlite3
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)


class Database:
    """
    Persistence collaborator: stores each pet as a JSON document keyed by user id,
    plus a log of completed minigame sessions for per-game leaderboards.
    Errors are logged and never propagate; the in-memory state stays authoritative.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.init_database()

    def _get_connection(self):
        """Creates a connection to the database."""
        return sqlite3.connect(self.db_path)

    def init_database(self):
        """Creates the tables if they don't exist yet."""
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute('''
                    CREATE TABLE IF NOT EXISTS pets (
                        user_id TEXT PRIMARY KEY,
                        data TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                ''')
                cursor.execute('''
                    CREATE TABLE IF NOT EXISTS game_results (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        session_id TEXT NOT NULL UNIQUE,
                        user_id TEXT NOT NULL,
                        game_id TEXT NOT NULL,
                        score INTEGER,
                        coins_awarded INTEGER,
                        played_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                ''')
                conn.commit()
                logger.info("Database initialized.")
        except sqlite3.Error as e:
            logger.error(f"Error initializing database: {e}")

    def load_pet(self, user_id: str) -> Optional[str]:
        """Returns the stored pet JSON for a user, or None."""
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT data FROM pets WHERE user_id = ?", (user_id,))
                row = cursor.fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            logger.error(f"Error loading pet for user {user_id}: {e}")
            return None

    def save_pet(self, user_id: str, data: str) -> bool:
        """Inserts or replaces the pet document. Last write wins."""
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute('''
                    INSERT INTO pets (user_id, data)
                    VALUES (?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        data = excluded.data,
                        updated_at = CURRENT_TIMESTAMP
                ''', (user_id, data))
                conn.commit()
                return True
        except sqlite3.Error as e:
            logger.error(f"Error saving pet for user {user_id}: {e}")
            return False

    def list_user_ids(self) -> List[str]:
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT user_id FROM pets ORDER BY user_id")
                return [row[0] for row in cursor.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Error listing pets: {e}")
            return []

    def record_game_result(self, session_id: str, user_id: str, game_id: str,
                           score: int, coins_awarded: int) -> bool:
        """Stores a completed minigame session. A session id is recorded at most once."""
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute('''
                    INSERT OR IGNORE INTO game_results (session_id, user_id, game_id, score, coins_awarded)
                    VALUES (?, ?, ?, ?, ?)
                ''', (session_id, user_id, game_id, score, coins_awarded))
                conn.commit()
                return True
        except sqlite3.Error as e:
            logger.error(f"Error saving game result for session {session_id}: {e}")
            return False

    def get_game_leaderboard(self, game_id: str, limit: int = 10):
        """Best score per user for one game, highest first."""
        try:
            with self._get_connection() as conn:
                conn.row_factory = sqlite3.Row
                cursor = conn.cursor()
                cursor.execute('''
                    SELECT user_id, MAX(score) AS score, MAX(played_at) AS last_played
                    FROM game_results
                    WHERE game_id = ?
                    GROUP BY user_id
                    ORDER BY score DESC, user_id
                    LIMIT ?
                ''', (game_id, limit))
                return [
                    {"rank": rank, **dict(row)}
                    for rank, row in enumerate(cursor.fetchall(), start=1)
                ]
        except sqlite3.Error as e:
            logger.error(f"Error loading leaderboard for game {game_id}: {e}")
            return []
