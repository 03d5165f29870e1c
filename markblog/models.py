from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

class Record(db.Model):
    __tablename__ = "records"

    key = db.Column(db.String(64), primary_key=True)  # post id, or a reserved key
    value = db.Column(db.JSON, nullable=False)        # {title?, short, long?}

    def __repr__(self):
        return f"<Record {self.key}>"
