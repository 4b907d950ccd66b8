"""upsell-builder: pick catalog products and arrange discounted upsell lists."""
