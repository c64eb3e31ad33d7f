"""
Ingestion package: crawled artifacts in, canonical documents out.

- kind_inference: Declaration-based classification of unknown pages
- adapters: API reference, language reference, legacy guide and design guideline loaders
- proposals: Evolution proposal loader with derived availability
- catalogs: Sample-code and package catalog parsing
- builder: Bulk index builds with progress reporting
"""
