#!/usr/bin/env python3
"""
Example: Redis Vector Store

Demonstrates:
1. Declaring filterable metadata fields
2. Creating the index on first use
3. Adding documents embedded through Ollama
4. Similarity search with a portable filter expression

Requires Redis Stack (RediSearch + RedisJSON) and an Ollama embedding model:
    docker run -p 6379:6379 redis/redis-stack-server
    ollama pull nomic-embed-text
"""
import asyncio
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from llm_adapters import (
    Document,
    LLMAdapterError,
    MetadataField,
    OllamaChatModel,
    ProviderEmbeddingModel,
    RedisVectorStore,
    RedisVectorStoreConfig,
    SearchRequest,
    configure_logging,
    parse_filter,
)


async def main():
    configure_logging(level="WARNING", json_output=False)

    print("=" * 60)
    print("REDIS VECTOR STORE EXAMPLE")
    print("=" * 60)

    provider = OllamaChatModel(embedding_model="nomic-embed-text")
    config = RedisVectorStoreConfig(
        index_name="example-index",
        prefix="example:",
        initialize_schema=True,
        metadata_fields=[MetadataField.tag("country"), MetadataField.numeric("year")],
    )

    async with RedisVectorStore(ProviderEmbeddingModel(provider), config) as store:
        try:
            ids = await store.add(
                [
                    Document("Spring AI rocks!!", {"country": "UK", "year": 2020}),
                    Document("The World is Big and Salvation Lurks Around the Corner", {"country": "NL", "year": 2021}),
                    Document("You walk forward facing the past", {"country": "BG", "year": 2023}),
                ]
            )
            print(f"\nStored {len(ids)} documents")

            request = SearchRequest(
                query="Spring",
                top_k=5,
                filter_expression="country in ['UK', 'NL'] && year >= 2020",
            )
            print(f"\nNative filter: {store.filter_converter.convert(parse_filter(request.filter_expression))}")

            for doc in await store.similarity_search(request):
                print(f"  {doc.score:.3f}  {doc.content}  {doc.metadata}")

            await store.delete(ids)
        except LLMAdapterError as e:
            print(f"\nVector store error: {e}")
        finally:
            await provider.close()


if __name__ == "__main__":
    asyncio.run(main())
