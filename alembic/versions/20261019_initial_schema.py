"""Initial schema: users, recipes, recipe_ingredients, recipe_likes.

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "3f1c9a7d2b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(30), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("location", sa.String(100), nullable=True),
        sa.Column("website", sa.String(300), nullable=True),
        sa.Column("social_media", sa.JSON, nullable=True),
        sa.Column("avatar_data", sa.LargeBinary, nullable=True),
        sa.Column("avatar_content_type", sa.String(100), nullable=True),
        sa.Column("avatar_filename", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "recipes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("public_id", sa.String(32), nullable=False),
        sa.Column(
            "owner_id", sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("instructions", sa.JSON, nullable=True),
        sa.Column("tags", sa.JSON, nullable=True),
        sa.Column("prep_time", sa.Integer, nullable=False, server_default="0"),
        sa.Column("cook_time", sa.Integer, nullable=False, server_default="0"),
        sa.Column("servings", sa.Integer, nullable=False, server_default="1"),
        sa.Column("difficulty", sa.String(10), nullable=False, server_default="Medium"),
        sa.Column("category", sa.String(20), nullable=False, server_default="Other"),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("views", sa.Integer, nullable=False, server_default="0"),
        sa.Column("image_data", sa.LargeBinary, nullable=True),
        sa.Column("image_content_type", sa.String(100), nullable=True),
        sa.Column("image_filename", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_recipes_public_id", "recipes", ["public_id"], unique=True)
    op.create_index("ix_recipes_owner_id", "recipes", ["owner_id"])
    op.create_index("ix_recipes_title", "recipes", ["title"])
    op.create_index("ix_recipes_category", "recipes", ["category"])
    op.create_index("ix_recipes_is_public", "recipes", ["is_public"])
    op.create_index("ix_recipes_created_at", "recipes", ["created_at"])
    op.create_index("ix_recipes_owner_created", "recipes", ["owner_id", "created_at"])

    op.create_table(
        "recipe_ingredients",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "recipe_id", sa.String(36),
            sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("quantity", sa.Float, nullable=False, server_default="0"),
        sa.Column("unit", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
    )
    op.create_index("ix_recipe_ingredients_recipe_id", "recipe_ingredients", ["recipe_id"])

    op.create_table(
        "recipe_likes",
        sa.Column(
            "recipe_id", sa.String(36),
            sa.ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "user_id", sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("liked_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_recipe_likes_user_id", "recipe_likes", ["user_id"])


def downgrade() -> None:
    op.drop_table("recipe_likes")
    op.drop_table("recipe_ingredients")
    op.drop_table("recipes")
    op.drop_table("users")
