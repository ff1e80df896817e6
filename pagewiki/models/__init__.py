from pagewiki.models.models import Comment, Image, Page

__all__ = ["Comment", "Image", "Page"]
