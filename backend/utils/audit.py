from sqlalchemy.orm import Session
from models.log import Log

def write_log(db: Session, *, session_id, action, resource, status="SUCCESS", meta=None):
    entry = Log(session_id=session_id, action=action, resource=resource, status=status, meta=meta or {})
    db.add(entry)
    db.commit()
    return entry
