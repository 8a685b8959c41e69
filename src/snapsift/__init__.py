"""snapsift: OCR categorization and perceptual duplicate detection for screenshot libraries."""

__version__ = "0.1.0"
