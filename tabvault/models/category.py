"""Category model."""

from pydantic import BaseModel, Field


class Category(BaseModel):
    """Admin-managed category used as classifier guidance."""

    name: str = Field(..., description="Category name")
    description: str = Field("", description="What belongs in this category")


DEFAULT_CATEGORIES = [
    Category(name="learning", description="Tutorials, courses, documentation, how-to guides"),
    Category(name="work", description="Professional tools, productivity, career-related"),
    Category(name="project", description="Code repos, project ideas, side projects"),
    Category(name="news", description="Current events, announcements, blog posts"),
    Category(name="reference", description="APIs, specs, reference materials, wikis"),
]
