"""
SQLAlchemy models of the exposed resources
"""

import datetime
import uuid

from .api_init import DB as db


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime.datetime:
    """
    naive UTC timestamp, the way the DateTime columns store it
    """
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


user_groups = db.Table(
    "user_groups",
    db.Column("user_id", db.String(36), db.ForeignKey("users.id"), primary_key=True),
    db.Column("group_id", db.String(36), db.ForeignKey("groups.id"), primary_key=True),
)

rescue_rats = db.Table(
    "rescue_rats",
    db.Column("rescue_id", db.String(36), db.ForeignKey("rescues.id"), primary_key=True),
    db.Column("rat_id", db.String(36), db.ForeignKey("rats.id"), primary_key=True),
)


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at = db.Column(db.DateTime, nullable=True)


class User(TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(1024))
    status = db.Column(db.String(32), default="active", nullable=False)
    suspended = db.Column(db.DateTime, nullable=True)
    frontier_id = db.Column(db.String(64), nullable=True)
    nicknames = db.Column(db.JSON, default=list)
    data = db.Column(db.JSON, default=dict)
    # no foreign key: rats.user_id already points the other way
    display_rat_id = db.Column(db.String(36), nullable=True)

    rats = db.relationship("Rat", back_populates="user")
    display_rat = db.relationship("Rat", primaryjoin="foreign(User.display_rat_id) == Rat.id", post_update=True)
    groups = db.relationship("Group", secondary=user_groups, back_populates="users")
    tokens = db.relationship("Token", back_populates="user", cascade="all, delete-orphan")
    decals = db.relationship("Decal", back_populates="user")

    @property
    def permissions(self):
        """
        union of the permissions of the user's groups
        """
        result = set()
        for group in self.groups:
            result.update(group.permissions or [])
        return result

    def is_suspended(self, now=None) -> bool:
        if self.suspended is None:
            return False
        return self.suspended > (now or utcnow())


class Rat(TimestampMixin, db.Model):
    __tablename__ = "rats"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(64), nullable=False)
    platform = db.Column(db.String(8), nullable=False, default="pc")
    data = db.Column(db.JSON, default=dict)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)

    user = db.relationship("User", back_populates="rats")
    ships = db.relationship("Ship", back_populates="rat", cascade="all, delete-orphan")


class Ship(TimestampMixin, db.Model):
    __tablename__ = "ships"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(22), nullable=True)
    ship_id = db.Column(db.Integer, nullable=True)
    ship_type = db.Column(db.String(64), nullable=True)
    rat_id = db.Column(db.String(36), db.ForeignKey("rats.id"), nullable=True)

    rat = db.relationship("Rat", back_populates="ships")


class Rescue(TimestampMixin, db.Model):
    __tablename__ = "rescues"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    client = db.Column(db.String(64), nullable=True)
    client_nick = db.Column(db.String(64), nullable=True)
    client_language = db.Column(db.String(8), nullable=True)
    code_red = db.Column(db.Boolean, default=False, nullable=False)
    command_identifier = db.Column(db.Integer, nullable=True)
    data = db.Column(db.JSON, default=dict)
    notes = db.Column(db.Text, default="", nullable=False)
    platform = db.Column(db.String(8), nullable=True)
    system = db.Column(db.String(64), nullable=True)
    title = db.Column(db.String(64), nullable=True)
    unidentified_rats = db.Column(db.JSON, default=list)
    status = db.Column(db.String(16), default="open", nullable=False)
    outcome = db.Column(db.String(16), nullable=True)
    quotes = db.Column(db.JSON, default=list)
    first_limpet_id = db.Column(db.String(36), db.ForeignKey("rats.id"), nullable=True)

    rats = db.relationship("Rat", secondary=rescue_rats)
    first_limpet = db.relationship("Rat", foreign_keys=[first_limpet_id])


class Token(TimestampMixin, db.Model):
    __tablename__ = "tokens"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    value = db.Column(db.String(128), unique=True, nullable=False)
    scope = db.Column(db.JSON, default=list)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)

    user = db.relationship("User", back_populates="tokens")


class Group(TimestampMixin, db.Model):
    __tablename__ = "groups"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(64), unique=True, nullable=False)
    vhost = db.Column(db.String(64), nullable=True)
    without_prefix = db.Column(db.Boolean, default=False, nullable=False)
    priority = db.Column(db.Integer, default=0, nullable=False)
    permissions = db.Column(db.JSON, default=list)
    channels = db.Column(db.JSON, default=dict)

    users = db.relationship("User", secondary=user_groups, back_populates="groups")


class Decal(TimestampMixin, db.Model):
    __tablename__ = "decals"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    code = db.Column(db.String(32), unique=True, nullable=False)
    decal_type = db.Column("type", db.String(16), default="rescues", nullable=False)
    claimed_at = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.Text, default="", nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)

    user = db.relationship("User", back_populates="decals")
