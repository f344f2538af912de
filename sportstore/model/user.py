# --- sportstore/model/user.py ---
from ..extensions import db
from ..utils.dates import utcnow, iso

# (threshold in VND, tier) - highest first
MEMBERSHIP_TIERS = [
    (10_000_000, "Kim cương"),
    (5_000_000, "Vàng"),
    (2_000_000, "Bạc"),
    (0, "Đồng"),
]


def membership_tier(total_spent) -> str:
    spent = float(total_spent or 0)
    for threshold, tier in MEMBERSHIP_TIERS:
        if spent >= threshold:
            return tier
    return MEMBERSHIP_TIERS[-1][1]


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False, default="")
    name = db.Column(db.String(100), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    address = db.Column(db.String(200), nullable=True)
    avatar = db.Column(db.String(512), nullable=True)
    role = db.Column(db.String(20), nullable=False, default="user", index=True)  # user | admin
    status = db.Column(db.String(20), nullable=False, default="active", index=True)  # active | inactive | blocked
    is_verified = db.Column(db.Boolean, default=False)
    total_spent = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    refresh_tokens = db.relationship("RefreshToken", backref="user", cascade="all, delete-orphan", lazy=True)

    @property
    def membership_level(self):
        return membership_tier(self.total_spent)

    def as_dict(self):
        return {
            "_id": self.id,
            "email": self.email,
            "name": self.name,
            "fullname": self.name,
            "phone": self.phone,
            "address": self.address,
            "avatar": self.avatar,
            "role": self.role,
            "status": self.status,
            "isVerified": bool(self.is_verified),
            "membershipLevel": self.membership_level,
            "totalSpent": float(self.total_spent or 0),
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class RefreshToken(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    expires_at = db.Column(db.DateTime, nullable=False)
