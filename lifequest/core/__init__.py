"""
Core infrastructure layer for LifeQuest.

Subsystems
----------
- `config`: environment `Config` and YAML `ConfigManager`
- `logging`: structured logging, `LogContext`, `get_logger`
- `event`: `EventBus` with tiered listener execution
- `database`: async SQLAlchemy `DatabaseService`
- `storage`: `DurableStore` and its storage media
- `infra`: `ApplicationContext` wiring everything together

Import from the subpackages directly; this package re-exports nothing so
that importing one subsystem does not drag in the others.
"""
