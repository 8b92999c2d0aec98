#!/usr/bin/env python3
"""
Seed the product catalog

This script:
1. Loads products from a JSON file, or the built-in sample catalog
2. Maps legacy category names to the current ones
3. Uploads each product's image from --images-dir, when one is given
4. Creates each product through ProductService (same validation as the API)

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --json products.json --skip-existing
    python scripts/seed_catalog.py --images-dir ./seed-images
"""

import argparse
import json
import logging
import mimetypes
import os
import sys
import time
from typing import Any, Dict, List, Optional

from catalog_admin.db.database import SessionLocal
from catalog_admin.errors import CatalogError
from catalog_admin.models.product import Product, PRODUCT_CATEGORIES
from catalog_admin.schemas.product import ProductCreate
from catalog_admin.services.asset_lifecycle import UploadedImage
from catalog_admin.services.product_service import ProductService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


# Category names used by older exports
LEGACY_CATEGORY_MAP = {
    'wisuda': 'bucket',
    'dekorasi balon': 'balon',
    'dekorasi pernikahan': 'pernikahan',
}

SAMPLE_PRODUCTS = [
    {
        'name': 'Bucket Wisuda Premium',
        'description': 'Bucket bunga mawar premium dengan dekorasi eksklusif untuk momen wisuda yang berkesan',
        'price': 150000,
        'original_price': 200000,
        'category': 'wisuda',
        'image_file': 'bucket-premium.jpg',
        'features': ['Bunga Segar', 'Custom Design', 'Gratis Kartu'],
        'is_featured': True,
        'rating': 5.0,
        'reviews_count': 45,
    },
    {
        'name': 'Paket Dekorasi Balon',
        'description': 'Paket lengkap dekorasi balon untuk acara spesial dengan berbagai pilihan warna',
        'price': 299000,
        'original_price': 350000,
        'category': 'balon',
        'image_file': 'balloon-decoration.jpg',
        'features': ['Setup Gratis', 'Pilihan Warna', 'Tahan 8 Jam'],
        'is_featured': True,
        'rating': 4.9,
        'reviews_count': 32,
    },
    {
        'name': 'Bucket Mini Love',
        'description': 'Bucket mini cantik dengan sentuhan romantis, cocok untuk hadiah spesial',
        'price': 99000,
        'original_price': 120000,
        'category': 'wisuda',
        'image_file': 'mini-bucket.jpg',
        'features': ['Ukuran Compact', 'Bunga Pilihan', 'Harga Terjangkau'],
        'is_featured': True,
        'rating': 4.8,
        'reviews_count': 67,
    },
    {
        'name': 'Bucket Graduation Deluxe',
        'description': 'Bucket wisuda mewah dengan bunga import dan dekorasi premium',
        'price': 250000,
        'original_price': 300000,
        'category': 'wisuda',
        'image_file': 'bucket-deluxe.jpg',
        'features': ['Bunga Import', 'Premium Wrapping', 'Custom Card'],
        'is_featured': False,
        'rating': 5.0,
        'reviews_count': 23,
    },
    {
        'name': 'Dekorasi Pernikahan Minimalis',
        'description': 'Paket dekorasi pernikahan dengan konsep minimalis dan elegant',
        'price': 1500000,
        'original_price': 1800000,
        'category': 'pernikahan',
        'image_file': 'wedding-minimal.jpg',
        'features': ['Setup Lengkap', 'Konsep Minimalis', 'Tim Decorator'],
        'is_featured': False,
        'rating': 4.9,
        'reviews_count': 15,
    },
    {
        'name': 'Bucket Wisuda Classic',
        'description': 'Bucket wisuda klasik dengan bunga pilihan dan harga terjangkau',
        'price': 85000,
        'original_price': 100000,
        'category': 'wisuda',
        'image_file': 'bucket-classic.jpg',
        'features': ['Bunga Segar', 'Design Klasik', 'Harga Ekonomis'],
        'is_featured': False,
        'rating': 4.7,
        'reviews_count': 89,
    },
]


def map_category(category: Optional[str]) -> Optional[str]:
    """Map a legacy or differently-cased category onto the current set"""
    if not isinstance(category, str):
        return category
    normalized = category.strip().lower()
    if normalized in PRODUCT_CATEGORIES:
        return normalized
    return LEGACY_CATEGORY_MAP.get(normalized, category)


def load_json(file_path: str) -> List[Dict[str, Any]]:
    """Load a list of product objects from a JSON file"""
    logger.info(f"Loading products from: {file_path}")
    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get('products', [])
    if not isinstance(data, list):
        raise ValueError(f"{file_path} must contain a list of products")
    logger.info(f"Loaded {len(data)} products from JSON")
    return data


def load_image(images_dir: Optional[str], image_file: Optional[str]) -> Optional[UploadedImage]:
    """Read a seed image so it goes through the regular upload path"""
    if not image_file:
        return None
    if not images_dir:
        logger.info(f"  No --images-dir given, {image_file} not uploaded")
        return None
    path = os.path.join(images_dir, os.path.basename(image_file))
    if not os.path.isfile(path):
        logger.warning(f"  Image {path} not found, creating product without an image")
        return None
    with open(path, 'rb') as f:
        data = f.read()
    content_type, _ = mimetypes.guess_type(path)
    return UploadedImage(data=data, filename=os.path.basename(path), content_type=content_type)


def seed_products(db, products: List[Dict[str, Any]], skip_existing: bool = False,
                  images_dir: Optional[str] = None, image_provider=None) -> Dict[str, int]:
    """Create each product, continuing past invalid entries

    Older exports carry local ``/uploads/...`` references in ``image_url``.
    Those name a file to upload from ``images_dir``; they are never stored as is.
    """
    product_service = ProductService(db, image_provider)
    existing = set()
    if skip_existing:
        existing = {name for (name,) in db.query(Product.name)}

    counts = {'created': 0, 'skipped': 0, 'failed': 0}
    total = len(products)
    for i, raw in enumerate(products, 1):
        raw = dict(raw)
        raw['category'] = map_category(raw.get('category'))
        image_file = raw.pop('image_file', None)
        image_url = raw.get('image_url')
        if isinstance(image_url, str) and image_url and not image_url.lower().startswith(('http://', 'https://')):
            raw.pop('image_url')
            image_file = image_file or image_url
        name = raw.get('name')

        if name in existing:
            logger.info(f"[{i}/{total}] Skipping existing product: {name}")
            counts['skipped'] += 1
            continue

        try:
            product_data = ProductCreate.from_payload(raw)
            image = load_image(images_dir, image_file)
            product = product_service.create_product(product_data, image)
        except CatalogError as e:
            logger.error(f"[{i}/{total}] Failed to create {name!r}: {e.message} {e.details or ''}")
            counts['failed'] += 1
            continue

        existing.add(product.name)
        counts['created'] += 1
        logger.info(f"[{i}/{total}] ✓ Created product {product.id}: {product.name} ({product.category})")
    return counts


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Seed the product catalog',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
    python scripts/seed_catalog.py --json products.json --skip-existing
        """
    )
    parser.add_argument('--json', help='Path to a JSON file with a list of products (default: built-in sample)')
    parser.add_argument('--skip-existing', action='store_true', help='Skip products whose name already exists')
    parser.add_argument('--images-dir', help='Directory holding the image files named by the products')
    args = parser.parse_args(argv)

    products = load_json(args.json) if args.json else SAMPLE_PRODUCTS

    start_time = time.time()
    db = SessionLocal()
    try:
        counts = seed_products(db, products, skip_existing=args.skip_existing, images_dir=args.images_dir)
    finally:
        db.close()

    logger.info(f"{'='*70}")
    logger.info("SEEDING SUMMARY")
    logger.info(f"{'='*70}")
    logger.info(f"  ✓ Created: {counts['created']:,}")
    logger.info(f"  - Skipped: {counts['skipped']:,}")
    logger.info(f"  ✗ Failed: {counts['failed']:,}")
    logger.info(f"Total time: {time.time() - start_time:.1f}s")
    return 1 if counts['failed'] else 0


if __name__ == '__main__':
    sys.exit(main())
