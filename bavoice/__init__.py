"""Student voice-line locator library.

Subpackages:
- bavoice.common: Shared utilities (text normalization, logging, config, http, cache files)
- bavoice.schema: Data types (students, variant formulas, audio resolutions)
- bavoice.input: Query side (student registry, identity resolver)
- bavoice.output: Wiki side (scraping, link cache, resolution pipeline, batch sync, download)
"""
