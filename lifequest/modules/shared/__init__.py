"""
Shared building blocks for LifeQuest feature modules.

Import concrete helpers from their modules (`base_service`, `exceptions`);
this package stays import-light so domain models can depend on it.
"""
