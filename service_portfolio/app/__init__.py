"""
Portfolio Service package for the SkillSnap Access Layer.

This package serves portfolio profiles, projects and skills behind a
read-cache with write-triggered invalidation and a stateless bearer-token
access gate. It provides:

- app.main: API surface for entity CRUD, register/login and health.
- app.components: Wiring of the cache, access gate and entity services.
- app.caching: In-process TTL cache, read-through reads, invalidation.
- app.auth: HS256 token issue/validation and the access policy gate.
- app.accounts: Account store, password hashing, registration and login.
- app.domain: Entity models, entity services and demo data.
- app.persistence: Repository interface and the in-memory implementation.

Guidelines:
- Reads of public data go through the cache; writes go to the repository
  first and invalidate the cache only once acknowledged.
- No per-request session state; every caller is identified by its token.
"""
