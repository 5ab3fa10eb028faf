from shubo.services.types import RecipeTemplate


def find_recipe(templates: list[RecipeTemplate], batch_type: str, scale: int) -> RecipeTemplate | None:
    """Find the recipe for *batch_type* at brewing *scale*.

    Exact scale first, otherwise the largest defined scale below it. Never
    rounds up: a scale smaller than every template has no recipe.
    """
    same_type = [t for t in templates if t.batch_type == batch_type]

    for template in same_type:
        if template.scale == scale:
            return template

    smaller = [t for t in same_type if t.scale <= scale]
    if not smaller:
        return None
    return max(smaller, key=lambda t: t.scale)
