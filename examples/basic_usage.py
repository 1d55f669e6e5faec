#!/usr/bin/env python3
"""
Basic Usage Example for the Schema Converter

This example demonstrates:
1. Converting MySQL DDL into a document schema
2. Reading the conversion report
3. Converting the document schema back into PostgreSQL DDL
"""
import sys
import os

# Add src to path for local development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from schema_converter import (
    create_pipeline,
    setup_logging,
    TargetFormat,
)

SHOP_DDL = """
CREATE TABLE users (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
    email VARCHAR(255) NOT NULL UNIQUE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE profiles (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
    user_id INT NOT NULL UNIQUE,
    bio TEXT,
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
);

CREATE TABLE orders (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
    user_id INT,
    total DECIMAL(10,2) NOT NULL,
    status VARCHAR(20) DEFAULT 'pending',
    placed_at TIMESTAMP,
    notes TEXT,
    FOREIGN KEY (user_id) REFERENCES users (id)
);

CREATE TABLE products (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
    name VARCHAR(100) NOT NULL
);

CREATE TABLE order_products (
    order_id INT NOT NULL,
    product_id INT NOT NULL,
    quantity INT DEFAULT 1,
    PRIMARY KEY (order_id, product_id),
    FOREIGN KEY (order_id) REFERENCES orders (id) ON DELETE CASCADE,
    FOREIGN KEY (product_id) REFERENCES products (id)
);
"""


def main():
    # Setup logging
    setup_logging(level="WARNING")

    print("=" * 60)
    print("Schema Converter - Basic Usage Example")
    print("=" * 60)

    pipeline = create_pipeline(dialect="postgresql", include_timestamps=True)

    # Relational -> document
    print("\n1. Converting MySQL DDL to a document schema...")
    result = pipeline.convert(SHOP_DDL, target=TargetFormat.DOCUMENT)

    for collection in result.output.collections:
        marker = " (link)" if collection.is_link else ""
        print(f"   {collection.name}{marker}: {', '.join(collection.field_names())}")

    print("\n2. Conversion report:")
    print(result.metadata["report"])

    # Document -> relational
    print("\n3. Converting the document schema back to PostgreSQL...")
    back = pipeline.convert(result.output.to_dict(), target=TargetFormat.RELATIONAL)
    print(back.output)

    if back.warnings:
        print(f"Warnings ({len(back.warnings)}):")
        for warning in back.warnings:
            print(f"   - {warning}")

    print("=" * 60)
    print("Example completed!")
    print("=" * 60)


if __name__ == "__main__":
    main()
