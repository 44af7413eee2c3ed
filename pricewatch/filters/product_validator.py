# pricewatch/filters/product_validator.py

"""Scraped product validation, run before records reach the store."""

import logging

from pricewatch.models.product import Product

logger = logging.getLogger("pricewatch.filters")


class ProductValidator:
    """Drop scraped products that cannot be reconciled safely."""

    @staticmethod
    def validate(
        products: list[Product],
    ) -> tuple[list[Product], int]:
        """Drop products with blank ids or names, non-positive prices,
        or a price history that is not exactly one new sample.

        Returns the valid products and the count of dropped items.
        """
        valid: list[Product] = []
        dropped = 0

        for product in products:
            if not product.id.strip() or not product.name.strip():
                logger.debug(
                    "Dropped product with blank id or name "
                    "(id=%r, name=%r)",
                    product.id,
                    product.name,
                )
                dropped += 1
                continue
            if product.current_price <= 0:
                logger.debug(
                    "Dropped product with zero/negative "
                    "price (id=%s, name=%s)",
                    product.id,
                    product.name,
                )
                dropped += 1
                continue
            if len(product.price_history) != 1:
                logger.debug(
                    "Dropped product with %d price samples "
                    "(id=%s)",
                    len(product.price_history),
                    product.id,
                )
                dropped += 1
                continue
            valid.append(product)

        if dropped:
            logger.info(
                "Validation dropped %d invalid products",
                dropped,
            )

        return valid, dropped
