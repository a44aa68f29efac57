import asyncio
from types import SimpleNamespace

from django.conf import settings

from rail_transform import FieldPermissionLvl, Transformer

if not settings.configured:
    settings.configure()


category = Transformer("category")
category.field("name", "nom_categorie").always().passthrough()

post = Transformer("post")
post.field("title", "titre_article").always().passthrough()
post.field("category", "categorie_article").always().sub_transform("category")
post.field("summary", "titre_article").at_or_above_private().build_with(
    lambda instance, key, is_list: getattr(instance, key)[:20]
)
post.field("review_notes").restrict_to_admin().passthrough()


async def main():
    instance = SimpleNamespace(
        titre_article="Permission-gated serialization",
        categorie_article=SimpleNamespace(nom_categorie="Django"),
        review_notes="needs an example",
    )
    for level in FieldPermissionLvl:
        print(level.value, await post.transform(level, instance))


if __name__ == "__main__":
    asyncio.run(main())
