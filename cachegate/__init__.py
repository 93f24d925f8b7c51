"""
Cachegate - Token-Authenticated Cache Demo Backend

A small API that authenticates users with bearer tokens and exposes a
time-boxed single-slot cache and a fire-and-forget background job.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- auth: Registration, login, bearer token lifecycle
- cache: Single-slot TTL cache
- jobs: Background progress jobs
- storage: Data persistence abstraction
- config: Application configuration
- api: Request/response models
"""

__version__ = "1.0.0"
