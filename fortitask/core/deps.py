from fortitask.db.session import SessionLocal


# every request that needs DB gets a fresh session, and it always closes.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
