from roadmaster.db.session import get_engine
from roadmaster.db.base import Base

def init_db():
    # register tables on the metadata before create_all
    from roadmaster.models.project import ProjectRecord  # noqa: F401

    engine = get_engine()
    Base.metadata.create_all(bind=engine)
