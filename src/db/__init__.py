"""Database layer. Importing the package registers every table on ``Base.metadata``."""
from src.db.tables import Base, RecipeRow, RecipeIngredientRow, RecipeLikeRow  # noqa: F401
from src.db.user_tables import UserRow  # noqa: F401
