"""Initial schema: accounts, vehicles, ride requests and ratings.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    role_enum = postgresql.ENUM("driver", "passenger", name="role", create_type=False)
    role_enum.create(op.get_bind(), checkfirst=True)

    # ── accounts ──────────────────────────────────────────────────────
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("active_role", role_enum, nullable=False),
        sa.Column("average_rating", sa.Float, nullable=False, server_default="0"),
        sa.Column("total_ratings", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_accounts_role", "accounts", ["role"])

    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "owner_id", sa.Integer, sa.ForeignKey("accounts.id"), nullable=False
        ),
        sa.Column("car_type", sa.String(80), nullable=False),
        sa.Column("pickup_location", sa.String(255), nullable=False),
        sa.Column("drop_location", sa.String(255), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("time", sa.String(5), nullable=False),
        sa.Column("total_seats", sa.Integer, nullable=False),
        sa.Column("available_seats", sa.Integer, nullable=False),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "available_seats >= 0 AND available_seats <= total_seats",
            name="ck_vehicles_seats",
        ),
    )
    op.create_index("idx_vehicles_owner", "vehicles", ["owner_id"])
    op.create_index("idx_vehicles_date", "vehicles", ["date"])

    # ── ride_requests ─────────────────────────────────────────────────
    op.create_table(
        "ride_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "listing_id",
            sa.Integer,
            sa.ForeignKey("vehicles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("accounts.id"), nullable=False
        ),
        sa.Column(
            "passenger_id", sa.Integer, sa.ForeignKey("accounts.id"), nullable=False
        ),
        sa.Column("passenger_name", sa.String(120), nullable=False),
        sa.Column("passenger_phone", sa.String(20), nullable=False),
        sa.Column("requested_seats", sa.Integer, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "accepted",
                "rejected",
                "cancelled",
                "completed",
                name="bookingstatus",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("review", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("requested_seats >= 1", name="ck_ride_requests_seats"),
    )
    op.create_index("idx_ride_requests_listing", "ride_requests", ["listing_id"])
    op.create_index(
        "idx_ride_requests_driver_status", "ride_requests", ["driver_id", "status"]
    )
    op.create_index("idx_ride_requests_passenger", "ride_requests", ["passenger_id"])

    # ── ratings ───────────────────────────────────────────────────────
    op.create_table(
        "ratings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("accounts.id"), nullable=False
        ),
        sa.Column(
            "passenger_id", sa.Integer, sa.ForeignKey("accounts.id"), nullable=False
        ),
        sa.Column(
            "ride_id", sa.Integer, sa.ForeignKey("ride_requests.id"), nullable=False
        ),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("review", sa.Text, nullable=True),
        sa.Column("cleanliness_rating", sa.Integer, nullable=True),
        sa.Column("behavior_rating", sa.Integer, nullable=True),
        sa.Column("safety_rating", sa.Integer, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "passenger_id", "ride_id", name="uq_ratings_passenger_ride"
        ),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_ratings_range"),
    )
    op.create_index("idx_ratings_driver", "ratings", ["driver_id"])


def downgrade() -> None:
    op.drop_table("ratings")
    op.drop_table("ride_requests")
    op.drop_table("vehicles")
    op.drop_table("accounts")
    op.execute("DROP TYPE IF EXISTS bookingstatus")
    op.execute("DROP TYPE IF EXISTS role")
