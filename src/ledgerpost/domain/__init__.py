"""Domain layer for ledgerpost: entities, errors and the posting engine services.

Services are imported from their modules (e.g. ``ledgerpost.domain.importer``);
this package stays free of imports so the database layer can depend on
``ledgerpost.domain.entities`` without a cycle.
"""
