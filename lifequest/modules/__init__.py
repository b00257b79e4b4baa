"""
Feature modules: progression, quests, persistence, daily reset and the
tracker service that ties them together.
"""
