"""
Seed the model catalog. Needs MONGODB_SERVICE_URI, since catalog writes require service privilege.

    python -m modelchat.seed
"""
import asyncio
import logging
import sys

from modelchat.config import DEFAULT_REAL_MODEL_TAG, get_settings
from modelchat.db import ChatDBError, ModelCatalogStore, open_store
from modelchat.schemas.catalog import ModelInfo

logger = logging.getLogger(__name__)

DEFAULT_MODELS = [
    ModelInfo(
        tag=DEFAULT_REAL_MODEL_TAG,
        name="Gemini 2.0 Flash",
        description="Google's experimental Gemini 2.0 Flash model",
    ),
    ModelInfo(tag="gpt-4o", name="GPT-4o", description="OpenAI's flagship multimodal model"),
    ModelInfo(tag="gpt-4o-mini", name="GPT-4o Mini", description="Smaller, faster GPT-4o"),
    ModelInfo(tag="gpt-3.5-turbo", name="GPT-3.5 Turbo", description="OpenAI's GPT-3.5 Turbo"),
    ModelInfo(tag="claude-3-sonnet", name="Claude 3 Sonnet", description="Anthropic's balanced Claude 3 model"),
    ModelInfo(tag="claude-3-haiku", name="Claude 3 Haiku", description="Anthropic's fastest Claude 3 model"),
]


async def seed_models(catalog: ModelCatalogStore, models: list[ModelInfo] = DEFAULT_MODELS) -> int:
    """Upsert each model by tag. Returns the number written."""
    for model in models:
        await catalog.upsert_model(model)
        logger.info("Seeded model %s (%s)", model.tag, model.name)
    return len(models)


async def _main() -> int:
    store = await open_store(get_settings())
    try:
        count = await seed_models(store.catalog)
    except ChatDBError as e:
        print(f"Seeding failed: {e}", file=sys.stderr)
        return 1
    finally:
        store.close()
    print(f"Seeded {count} models.")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(_main()))
