"""Policy subpackage - shipping zones and promo code applicability."""
