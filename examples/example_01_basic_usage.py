"""Example 01: Basic Usage - Docstore Fundamentals.

This example demonstrates the fundamental operations against a DynamoDB
table (DynamoDB Local works: set DOCSTORE_ENDPOINT_URL=http://localhost:8000):
- Creating, reading, replacing and deleting documents
- Optimistic concurrency with revision tokens
- Atomic write groups
- Queries served by the table, an index, or a scan, with pagination tokens

The table must exist with partition key "Player" (S), sort key "Game" (S)
and a local secondary index "ByScore" on "Score" (N).
"""

import os

from docstore import (
    CollectionOptions,
    DocStoreClient,
    DocstoreConfig,
    Increment,
    ResourceNotFoundError,
)


def main():
    """Run the basic usage example."""
    print("=" * 80)
    print("DOCSTORE BASIC USAGE EXAMPLE")
    print("=" * 80)

    config = DocstoreConfig.from_env()
    if config.region is None:
        config.region = "us-east-1"
    options = CollectionOptions(
        table_name=os.getenv("DOCSTORE_TABLE", "games"),
        partition_key="Player",
        sort_key="Game",
    )

    with DocStoreClient(options, config=config) as games:
        # Step 1: Create documents. Each successful write stamps a revision.
        ann = games.create({"Player": "ann", "Game": "chess", "Score": 40})
        games.create({"Player": "ann", "Game": "go", "Score": 55})
        print(f"\n✓ Created ann/chess with revision {ann['DocstoreRevision']}")

        # Step 2: Read a document back, optionally only some fields.
        doc = games.get({"Player": "ann", "Game": "chess"}, "Score")
        print(f"✓ Read back: {doc.as_dict()}")

        # Step 3: Optimistic concurrency. A stale revision is rejected.
        stale = dict(ann.as_dict())
        games.update(ann, {"Score": Increment(5)})
        try:
            games.replace(stale)
        except ResourceNotFoundError:
            print("✓ Replace with a stale revision was rejected")

        # Step 4: Atomic writes: all or nothing.
        (
            games.actions()
            .enable_atomic_writes()
            .put({"Player": "bob", "Game": "chess", "Score": 10})
            .put({"Player": "bob", "Game": "go", "Score": 12})
            .run()
        )
        print("✓ Wrote bob's games in one transaction")

        # Step 5: Queries. The planner picks the table or an index.
        it = games.query(("Player", "=", "ann"), ("Score", ">", 0), order_by="Score", limit=1)
        print(f"\nPlan: {it.query_plan()}")
        for d in it:
            print(f"  {d['Game']}: {d['Score']}")
        token = it.pagination_token
        if not token.is_exhausted():
            for d in games.query(("Player", "=", "ann"), ("Score", ">", 0), order_by="Score", pagination_token=token):
                print(f"  {d['Game']}: {d['Score']} (resumed)")

        # Step 6: Clean up.
        for player, game in [("ann", "chess"), ("ann", "go"), ("bob", "chess"), ("bob", "go")]:
            games.delete({"Player": player, "Game": game})
        print("\n✓ Cleaned up")


if __name__ == "__main__":
    main()
