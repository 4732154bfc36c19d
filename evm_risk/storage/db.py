from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

engine = None
SessionLocal = sessionmaker(autoflush=False)
Base = declarative_base()


def maybe_init_db(audit_enabled: bool, db_url: str = "sqlite:///./audits.db") -> bool:
    global engine
    if not audit_enabled:
        return False
    from .models import Analysis  # noqa
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    engine = create_engine(db_url, connect_args=connect_args)
    SessionLocal.configure(bind=engine)
    Base.metadata.create_all(bind=engine)
    return True


def record_analysis(result) -> None:
    from .models import Analysis
    with SessionLocal() as session:
        session.add(Analysis.from_result(result))
        session.commit()
