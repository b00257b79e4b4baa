"""
LifeQuest Test Suite
====================

Test Organization
-----------------
- tests/unit/          : Fast unit tests with in-memory storage and mocks
- tests/unit/domain/   : Domain model tests (no services, no I/O)
- tests/integration/   : Tests touching SQLite files and the filesystem

Testing Philosophy
------------------
- Unit tests: fast, isolated, test business rules
- Integration tests: real SQLite and real files under tmp_path
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
