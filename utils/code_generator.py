# utils/code_generator.py
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

AUTO_CODES = ("", "AUTO", "AUTOGEN")


def wants_autogen(raw: str | None) -> bool:
    return (raw or "").strip().upper() in AUTO_CODES


def next_code_yearly(db: Session, model, field: str, prefix: str, width: int = 4, year: int | None = None) -> str:
    """
    Next document number of the year for ``model.field``: PREFIX + YY + running number,
    e.g. PRD250001, SO250012. Codes under the same PREFIX+YY whose tail is not
    numeric (hand-typed codes) are ignored.
    """
    base = f"{prefix}{(year or datetime.now().year) % 100:02d}"
    col = getattr(model, field)
    taken = db.scalars(select(col).where(col.like(f"{base}%"))).all()
    running = [int(code[len(base):]) for code in taken if code[len(base):].isdigit()]
    return f"{base}{max(running, default=0) + 1:0{width}d}"
