"""
Database connection management
"""
from sqlalchemy import create_engine, Engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session, scoped_session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.pool import QueuePool
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, TypeVar
from config.settings import settings
from mediation.db.base import Base
from mediation.utils.exceptions import MediationError, DatabaseError, ConcurrentModificationError
from mediation.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments for the configured backend"""
    options: Dict[str, Any] = {
        "poolclass": QueuePool,
        "pool_pre_ping": True,  # check connections before use
        "echo": settings.database_echo,
    }
    if database_url.startswith("sqlite"):
        # requests are served from a thread pool
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = 5
        options["max_overflow"] = 10
    return options


class DatabaseManager:
    """Owns the engine and hands out sessions"""
    
    def __init__(self, database_url: str = None):
        self.database_url = database_url or settings.database_url
        self.engine: Engine = None
        self.SessionLocal: scoped_session = None
        self._initialize()
    
    def _initialize(self):
        """Create the engine and session factory"""
        try:
            self.engine = create_engine(self.database_url, **_engine_options(self.database_url))
            
            self.SessionLocal = scoped_session(
                sessionmaker(
                    autocommit=False,
                    autoflush=False,
                    bind=self.engine
                )
            )
            
            logger.info("Database connection initialised")
        except Exception as e:
            logger.error(f"Database connection initialisation failed: {str(e)}")
            raise
    
    def get_session(self) -> Session:
        """
        Get a database session
        
        Returns:
            Session instance
        """
        return self.SessionLocal()
    
    @contextmanager
    def get_db_session(self) -> Generator[Session, None, None]:
        """
        Session scope: commits on success, rolls back on any error
        
        Yields:
            Session instance
        
        Example:
            with db_manager.get_db_session() as session:
                session.add(row)
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except (MediationError, StaleDataError):
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database session error: {str(e)}")
            raise DatabaseError(str(e)) from e
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {str(e)}")
            raise
        finally:
            session.close()
    
    def run_in_transaction(self, work: Callable[[Session], T], resource: str = "Record") -> T:
        """
        Run a unit of work in one transaction, retrying on optimistic-lock conflicts
        
        The whole unit is replayed when a versioned row was changed underneath it,
        so checks made inside `work` always see the state they write against.
        
        Args:
            work: callable receiving the session; its return value is passed through
            resource: name used in the conflict error when retries run out
        
        Returns:
            whatever `work` returns
        
        Raises:
            ConcurrentModificationError: every attempt hit a stale version
        """
        attempts = max(1, settings.transaction_max_retries + 1)
        for attempt in range(1, attempts + 1):
            try:
                with self.get_db_session() as session:
                    return work(session)
            except StaleDataError:
                logger.warning(f"{resource} changed concurrently (attempt {attempt}/{attempts})")
        
        raise ConcurrentModificationError(resource)
    
    def create_tables(self):
        """Create all tables known to the metadata"""
        import mediation.db.models  # noqa: F401  register models
        Base.metadata.create_all(bind=self.engine)
    
    def drop_tables(self):
        """Drop all tables known to the metadata"""
        import mediation.db.models  # noqa: F401
        Base.metadata.drop_all(bind=self.engine)
    
    def health_check(self) -> bool:
        """
        Check the database connection
        
        Returns:
            True when a trivial query succeeds
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.debug("Database connection healthy")
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False
    
    def close(self):
        """Dispose the engine"""
        if self.engine:
            self.engine.dispose()
            logger.info("Database connection closed")


# Global database manager
db_manager = DatabaseManager()
