"""
Core application modules.
Contains essential infrastructure components:
- db: Database configuration and connection management
- pubsub: In-process change fan-out for live subscriptions
- security: Authentication and password hashing
- store: Document store contract (paths, queries, snapshots, errors)
- tortoise_store: Document store implementation on Tortoise ORM
"""
