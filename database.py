from datetime import datetime
from sqlalchemy import create_engine, event, Column, Integer, String, ForeignKey, DateTime, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, scoped_session, relationship

from app_logger import get_logger
from errors import StorageError, ValidationError
from storage import StorageAdapter, ASSET_FIELDS

logger = get_logger("database")

Base = declarative_base()


# --- MODELS ---
class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    departments = relationship("Department", back_populates="user", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "password_hash": self.password_hash,
            "created_at": self.created_at,
        }


class Department(Base):
    __tablename__ = 'departments'
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.now)

    user = relationship("User", back_populates="departments")
    assets = relationship("Asset", back_populates="department", cascade="all, delete-orphan")
    sessions = relationship("InventorySession", back_populates="department", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "user_id": self.user_id,
            "created_at": self.created_at,
        }


class Asset(Base):
    __tablename__ = 'assets'
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    serial_number = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    location = Column(String, nullable=False)
    photo_uri = Column(String)
    rfid_code = Column(String, unique=True, nullable=False, index=True)
    department_id = Column(Integer, ForeignKey('departments.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now)

    department = relationship("Department", back_populates="assets")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "serial_number": self.serial_number,
            "quantity": self.quantity,
            "location": self.location,
            "photo_uri": self.photo_uri,
            "rfid_code": self.rfid_code,
            "department_id": self.department_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class InventorySession(Base):
    __tablename__ = 'inventory_sessions'
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    date = Column(DateTime, nullable=False)
    department_id = Column(Integer, ForeignKey('departments.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    closed_at = Column(DateTime)

    department = relationship("Department", back_populates="sessions")
    scans = relationship("InventoryScan", order_by="InventoryScan.id", back_populates="session",
                         cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date,
            "department_id": self.department_id,
            "created_at": self.created_at,
            "closed_at": self.closed_at,
        }


class InventoryScan(Base):
    __tablename__ = 'inventory_scans'
    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey('inventory_sessions.id', ondelete='CASCADE'), nullable=False, index=True)
    # Not a foreign key: scans reference assets only by code value
    rfid_code = Column(String, nullable=False)
    timestamp = Column(DateTime, default=datetime.now)

    session = relationship("InventorySession", back_populates="scans")

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "rfid_code": self.rfid_code,
            "timestamp": self.timestamp,
        }


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _like_pattern(query):
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# --- CONTROLLER ---
class Database(StorageAdapter):
    def __init__(self, db_name):
        self.engine = create_engine(f'sqlite:///{db_name}', connect_args={'check_same_thread': False})
        event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        Base.metadata.create_all(self.engine)
        self.Session = scoped_session(sessionmaker(bind=self.engine))

    def get_session(self):
        return self.Session()

    def close(self):
        self.Session.remove()
        self.engine.dispose()

    def _commit(self, session, action):
        try:
            session.commit()
        except IntegrityError as e:
            session.rollback()
            if "rfid_code" in str(e.orig):
                raise ValidationError("RFID code is already assigned to another asset") from e
            if "username" in str(e.orig):
                raise ValidationError("Username already exists") from e
            logger.error("Constraint violation during %s: %s", action, e)
            raise StorageError(f"Constraint violation during {action}") from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database error during %s: %s", action, e)
            raise StorageError(f"Database error during {action}") from e

    def _fetch_one(self, model, **filters):
        session = self.get_session()
        try:
            row = session.query(model).filter_by(**filters).first()
            return row.to_dict() if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read {model.__tablename__}") from e
        finally:
            session.close()

    def _fetch_all(self, query_fn, table):
        session = self.get_session()
        try:
            return [row.to_dict() for row in query_fn(session)]
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read {table}") from e
        finally:
            session.close()

    # --- USERS / DEPARTMENTS ---
    def create_user(self, username, password_hash):
        session = self.get_session()
        try:
            user = User(username=username, password_hash=password_hash)
            session.add(user)
            self._commit(session, "create_user")
            return user.to_dict()
        finally:
            session.close()

    def get_user(self):
        session = self.get_session()
        try:
            user = session.query(User).order_by(User.id).first()
            return user.to_dict() if user else None
        except SQLAlchemyError as e:
            raise StorageError("Could not read users") from e
        finally:
            session.close()

    def get_user_by_name(self, username):
        return self._fetch_one(User, username=username)

    def create_department(self, name, user_id):
        session = self.get_session()
        try:
            dept = Department(name=name, user_id=user_id)
            session.add(dept)
            self._commit(session, "create_department")
            return dept.to_dict()
        finally:
            session.close()

    def get_department(self, department_id):
        return self._fetch_one(Department, id=department_id)

    def get_department_for_user(self, user_id):
        return self._fetch_one(Department, user_id=user_id)

    def delete_department(self, department_id):
        session = self.get_session()
        try:
            dept = session.query(Department).filter_by(id=department_id).first()
            if not dept:
                return False
            session.delete(dept)
            self._commit(session, "delete_department")
            return True
        finally:
            session.close()

    # --- ASSETS ---
    def create_asset(self, department_id, fields):
        session = self.get_session()
        try:
            now = datetime.now()
            asset = Asset(department_id=department_id, created_at=now, updated_at=now,
                          **{k: fields.get(k) for k in ASSET_FIELDS})
            session.add(asset)
            self._commit(session, "create_asset")
            return asset.to_dict()
        finally:
            session.close()

    def get_asset(self, asset_id):
        return self._fetch_one(Asset, id=asset_id)

    def get_asset_by_rfid(self, rfid_code):
        return self._fetch_one(Asset, rfid_code=rfid_code)

    def update_asset(self, asset_id, fields):
        session = self.get_session()
        try:
            asset = session.query(Asset).filter_by(id=asset_id).first()
            if not asset:
                return None
            for key, value in fields.items():
                if key in ASSET_FIELDS:
                    setattr(asset, key, value)
            asset.updated_at = datetime.now()
            self._commit(session, "update_asset")
            return asset.to_dict()
        finally:
            session.close()

    def delete_asset(self, asset_id):
        session = self.get_session()
        try:
            asset = session.query(Asset).filter_by(id=asset_id).first()
            if not asset:
                return False
            session.delete(asset)
            self._commit(session, "delete_asset")
            return True
        finally:
            session.close()

    def list_assets(self, department_id):
        return self._fetch_all(
            lambda s: s.query(Asset).filter_by(department_id=department_id)
            .order_by(Asset.created_at.desc(), Asset.id.desc()).all(),
            "assets")

    def search_assets(self, department_id, query):
        pattern = _like_pattern(query)
        return self._fetch_all(
            lambda s: s.query(Asset).filter(Asset.department_id == department_id).filter(or_(
                Asset.name.ilike(pattern, escape="\\"),
                Asset.serial_number.ilike(pattern, escape="\\"),
                Asset.rfid_code.ilike(pattern, escape="\\"),
                Asset.location.ilike(pattern, escape="\\"),
            )).order_by(Asset.created_at.desc(), Asset.id.desc()).all(),
            "assets")

    # --- INVENTORY ---
    def create_inventory_session(self, name, department_id):
        session = self.get_session()
        try:
            now = datetime.now()
            inv = InventorySession(name=name, date=now, department_id=department_id, created_at=now)
            session.add(inv)
            self._commit(session, "create_session")
            return inv.to_dict()
        finally:
            session.close()

    def get_inventory_session(self, session_id):
        return self._fetch_one(InventorySession, id=session_id)

    def list_inventory_sessions(self, department_id):
        return self._fetch_all(
            lambda s: s.query(InventorySession).filter_by(department_id=department_id)
            .order_by(InventorySession.created_at.desc(), InventorySession.id.desc()).all(),
            "inventory_sessions")

    def close_inventory_session(self, session_id, closed_at):
        session = self.get_session()
        try:
            inv = session.query(InventorySession).filter_by(id=session_id).first()
            if not inv:
                return None
            inv.closed_at = closed_at
            self._commit(session, "close_session")
            return inv.to_dict()
        finally:
            session.close()

    def delete_inventory_session(self, session_id):
        session = self.get_session()
        try:
            inv = session.query(InventorySession).filter_by(id=session_id).first()
            if not inv:
                return False
            session.delete(inv)
            self._commit(session, "delete_session")
            return True
        finally:
            session.close()

    def add_scan(self, session_id, rfid_code):
        session = self.get_session()
        try:
            scan = InventoryScan(session_id=session_id, rfid_code=rfid_code, timestamp=datetime.now())
            session.add(scan)
            self._commit(session, "add_scan")
            return scan.to_dict()
        finally:
            session.close()

    def list_scans(self, session_id):
        return self._fetch_all(
            lambda s: s.query(InventoryScan).filter_by(session_id=session_id)
            .order_by(InventoryScan.timestamp.asc(), InventoryScan.id.asc()).all(),
            "inventory_scans")
