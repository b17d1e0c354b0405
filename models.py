from flask_sqlalchemy import SQLAlchemy

from utils import utcnow, iso

db = SQLAlchemy()

ROLE_STANDARD = "standard"
ROLE_ADMIN = "administrator"
ROLES = (ROLE_STANDARD, ROLE_ADMIN)

BRIEF_STATUS_OPEN = "open"

OFFER_NEW = "new"
OFFER_SHORTLIST = "shortlist"
OFFER_REJECTED = "rejected"
OFFER_STATUSES = (OFFER_NEW, OFFER_SHORTLIST, OFFER_REJECTED)

EVENT_USER_LOGIN = "user_login"
EVENT_PROJECT_CREATED = "project_created"
EVENT_OFFER_SUBMITTED = "offer_submitted"
EVENT_OFFER_STATUS_CHANGED = "offer_status_changed"
EVENT_OFFER_DELETED = "offer_deleted"
EVENT_AI_PROJECT_IMPROVE = "ai_project_improve"
EVENT_AI_PROJECT_REVIEW = "ai_project_review"
EVENT_AI_OFFER_IMPROVE = "ai_offer_improve"
EVENT_AI_OFFER_REVIEW = "ai_offer_review"
EVENT_TYPES = (
    EVENT_USER_LOGIN,
    EVENT_PROJECT_CREATED,
    EVENT_OFFER_SUBMITTED,
    EVENT_OFFER_STATUS_CHANGED,
    EVENT_OFFER_DELETED,
    EVENT_AI_PROJECT_IMPROVE,
    EVENT_AI_PROJECT_REVIEW,
    EVENT_AI_OFFER_IMPROVE,
    EVENT_AI_OFFER_REVIEW,
)

# Template categories only drive the hint text shown on the brief form.
BRIEF_TEMPLATES = {
    "website": {
        "label": "Website",
        "hint": "List the pages you need, who will fill in the content and where it will be hosted.",
    },
    "mobile_app": {
        "label": "Mobile app",
        "hint": "Name the target platforms (iOS, Android), the key screens and any backend that already exists.",
    },
    "design": {
        "label": "Design",
        "hint": "Describe the brand, attach references you like and state the formats you expect to receive.",
    },
    "marketing": {
        "label": "Marketing",
        "hint": "State the channel, the audience, the budget for ads and how success will be measured.",
    },
    "other": {
        "label": "Other",
        "hint": "Describe the task, the expected result and how you will accept the work.",
    },
}
DEFAULT_TEMPLATE = "other"


class Account(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_STANDARD)

    is_blocked = db.Column(db.Boolean, nullable=False, default=False)
    blocked_at = db.Column(db.DateTime, nullable=True)

    login_count = db.Column(db.Integer, nullable=False, default=0)
    last_login_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    briefs = db.relationship("Brief", back_populates="owner", lazy="select")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self) -> dict:
        # never expose password_hash
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "isBlocked": bool(self.is_blocked),
            "blockedAt": iso(self.blocked_at),
            "loginCount": self.login_count or 0,
            "lastLoginAt": iso(self.last_login_at),
            "createdAt": iso(self.created_at),
        }


class Brief(db.Model):
    __tablename__ = "briefs"

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    expected_result = db.Column(db.Text, nullable=False)
    deadline = db.Column(db.String(200), nullable=False)
    budget = db.Column(db.String(200), nullable=True)
    criteria = db.Column(db.JSON, nullable=True)
    template = db.Column(db.String(30), nullable=False, default=DEFAULT_TEMPLATE)

    status = db.Column(db.String(20), nullable=False, default=BRIEF_STATUS_OPEN)
    public_token = db.Column(db.String(64), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    owner = db.relationship("Account", back_populates="briefs")
    offers = db.relationship("Offer", back_populates="brief", lazy="select")

    def to_public_dict(self) -> dict:
        """Fields a token holder may see. No owner identity."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "expectedResult": self.expected_result,
            "deadline": self.deadline,
            "budget": self.budget,
            "criteria": list(self.criteria or []),
            "template": self.template,
            "status": self.status,
            "publicToken": self.public_token,
            "createdAt": iso(self.created_at),
        }

    def to_dict(self) -> dict:
        data = self.to_public_dict()
        data["ownerId"] = self.owner_id
        return data


class Offer(db.Model):
    __tablename__ = "offers"

    id = db.Column(db.Integer, primary_key=True)
    brief_id = db.Column(db.Integer, db.ForeignKey("briefs.id"), nullable=False, index=True)

    freelancer_name = db.Column(db.String(200), nullable=False)
    contact = db.Column(db.String(255), nullable=False)
    portfolio = db.Column(db.Text, nullable=True)
    experience = db.Column(db.Text, nullable=True)
    skills = db.Column(db.Text, nullable=True)

    approach = db.Column(db.Text, nullable=False)
    deadline = db.Column(db.String(200), nullable=False)
    price = db.Column(db.String(200), nullable=False)
    guarantees = db.Column(db.Text, nullable=True)
    risks = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=OFFER_NEW, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    brief = db.relationship("Brief", back_populates="offers")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "projectId": self.brief_id,
            "freelancerName": self.freelancer_name,
            "contact": self.contact,
            "portfolio": self.portfolio,
            "experience": self.experience,
            "skills": self.skills,
            "approach": self.approach,
            "deadline": self.deadline,
            "price": self.price,
            "guarantees": self.guarantees,
            "risks": self.risks,
            "status": self.status,
            "createdAt": iso(self.created_at),
        }


class ActivityEvent(db.Model):
    __tablename__ = "activity_events"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    event_type = db.Column(db.String(40), nullable=False, index=True)
    # "metadata" is reserved on declarative classes
    meta = db.Column("metadata", db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "eventType": self.event_type,
            "metadata": self.meta,
            "createdAt": iso(self.created_at),
        }
