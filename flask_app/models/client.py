# flask_app/models/client.py

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseModel, db

CLIENT_ROLE = "client"


class Client(BaseModel):
    """Customer account, keyed by its business code and its tax identifier."""

    __tablename__ = "clients"

    id = db.Column(db.Integer, primary_key=True)
    cod_client = db.Column(db.String(32), unique=True, nullable=False, index=True)
    razon_soci = db.Column(db.String(255), nullable=False)
    identiftri = db.Column(db.String(32), unique=True, nullable=False, index=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    active = db.Column(db.Boolean, default=False, nullable=False)
    must_change_password = db.Column(db.Boolean, default=True, nullable=False)
    role = db.Column(db.String(20), default=CLIENT_ROLE, nullable=False)

    orders = db.relationship("Order", back_populates="client")

    def __repr__(self):
        return f"<Client {self.cod_client}>"

    @staticmethod
    def find_by_id(client_id):
        """Find client by ID with error handling"""
        try:
            return db.session.get(Client, client_id)
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding client by id {client_id}: {str(e)}")
            return None

    def to_dict(self):
        return {
            "id": self.id,
            "cod_client": self.cod_client,
            "razon_soci": self.razon_soci,
            "identiftri": self.identiftri,
            "username": self.username,
            "active": self.active,
            "must_change_password": self.must_change_password,
            "role": self.role,
            "createdAt": self._isoformat(self.created_at),
            "updatedAt": self._isoformat(self.updated_at),
        }
