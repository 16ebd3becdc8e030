"""
Streamlit desk tool for customer service and marketing.

Features:
- Order totals calculator with promo codes and delivery destinations
- Resolution trace for every totals calculation
- A/B test significance checker
"""
import streamlit as st
import pandas as pd
from datetime import datetime
from decimal import Decimal

from storefront_pricing import __version__
from storefront_pricing.analytics.ab_testing import VariantStats, analyze, recommend
from storefront_pricing.config.settings import get_settings
from storefront_pricing.engine import LineItem, PricingEngine, PricingError
from storefront_pricing.engine.money import format_gbp
from storefront_pricing.policy.discount_policy import DiscountPolicy
from storefront_pricing.services.discount_repository import DiscountRepository


st.set_page_config(
    page_title="Storefront Pricing Desk",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_engine():
    """Get cached engine instance."""
    return PricingEngine(get_settings())


@st.cache_resource
def get_discount_policy():
    return DiscountPolicy(DiscountRepository.from_settings(get_settings()))


try:
    engine = get_engine()
    discount_policy = get_discount_policy()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


# ============================================================================
# SIDEBAR: Delivery & Promo
# ============================================================================
with st.sidebar:
    st.header("🚚 Delivery")

    with st.container(border=True):
        country_code = st.text_input("Country Code", value="GB", max_chars=2).upper()
        method = st.radio("Method", options=["standard", "express"], horizontal=True)
        zone = engine.zone_resolver.zone_for(country_code)
        st.markdown(f"**Zone:** {zone.name} ({zone.code})")
        st.caption(f"Free standard delivery from {format_gbp(zone.free_threshold)}")

    st.divider()

    st.header("🏷️ Promo Code")
    promo_code = st.text_input("Code", value="", placeholder="e.g. MILITARY10")


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("Storefront Pricing Desk")
st.caption(f"v{__version__} | VAT {get_settings().vat_rate * 100:.0f}% | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2 = st.tabs(["🧾 Order Totals", "📊 A/B Tests"])


# ============================================================================
# TAB 1: ORDER TOTALS
# ============================================================================
with tab1:
    col1, col2 = st.columns([1.6, 1.4], gap="large")

    with col1:
        st.subheader("Cart")
        cart_df = st.data_editor(
            pd.DataFrame([
                {"SKU": "UK-FLAG-TEE", "Description": "Union Flag Tee", "Unit Price": 24.99, "Quantity": 1},
                {"SKU": "REGT-HOODIE", "Description": "Regiment Hoodie", "Unit Price": 19.99, "Quantity": 1},
            ]),
            num_rows="dynamic",
            use_container_width=True,
            key="cart_editor",
        )

    with col2:
        st.subheader("Summary")
        rows = cart_df.dropna(subset=["Unit Price", "Quantity"])

        try:
            items = [
                LineItem(
                    unit_price=Decimal(str(row["Unit Price"])),
                    quantity=int(row["Quantity"]),
                    sku=str(row.get("SKU") or ""),
                    description=str(row.get("Description") or ""),
                )
                for _, row in rows.iterrows()
            ]

            discount = None
            if promo_code.strip():
                subtotal = sum((i.line_total for i in items), Decimal("0"))
                validation = discount_policy.validate_code(promo_code, subtotal)
                if validation.valid:
                    discount = validation.discount
                    st.success(f"{validation.code}: {discount.description}")
                else:
                    st.warning(validation.error)

            result = engine.quote(items, country_code=country_code, method=method, discount=discount)

            m1, m2 = st.columns(2)
            m1.metric("Subtotal", format_gbp(result.subtotal))
            m2.metric("Discount", f"-{format_gbp(result.discount_amount)}")
            m3, m4 = st.columns(2)
            m3.metric("Shipping", "FREE" if result.free_shipping_applied else format_gbp(result.shipping_cost))
            m4.metric("VAT", format_gbp(result.tax))
            st.metric("Total", format_gbp(result.total))

            for warning in result.warnings:
                st.warning(warning)

            with st.expander("🔍 Calculation Trace"):
                for t in result.trace:
                    if t.value:
                        st.caption(f"**{t.step}**: {t.description} = `{t.value}`")
                    else:
                        st.caption(f"**{t.step}**: {t.description}")

        except PricingError as e:
            st.error(str(e))


# ============================================================================
# TAB 2: A/B TESTS
# ============================================================================
with tab2:
    st.subheader("Variant Results")
    a_col, b_col = st.columns(2)

    with a_col:
        st.markdown("##### Variant A")
        a_sent = st.number_input("Sent", min_value=0, value=100, step=1, key="a_sent")
        a_converted = st.number_input("Converted", min_value=0, value=5, step=1, key="a_converted")

    with b_col:
        st.markdown("##### Variant B")
        b_sent = st.number_input("Sent", min_value=0, value=100, step=1, key="b_sent")
        b_converted = st.number_input("Converted", min_value=0, value=25, step=1, key="b_converted")

    try:
        variant_a = VariantStats(sent=int(a_sent), converted=int(a_converted))
        variant_b = VariantStats(sent=int(b_sent), converted=int(b_converted))
        min_sample = get_settings().ab_min_sample_size
        result = analyze(variant_a, variant_b, min_sample)
        advice = recommend(variant_a, variant_b, min_sample)

        c1, c2, c3 = st.columns(3)
        c1.metric("Confidence", f"{result.confidence_level}%")
        c2.metric("Winner", result.winner or "—")
        c3.metric("Sample Needed / Variant", result.sample_size_needed)

        st.dataframe(
            pd.DataFrame([
                {"Variant": "A", **variant_a.to_dict()},
                {"Variant": "B", **variant_b.to_dict()},
            ]),
            hide_index=True,
            use_container_width=True,
        )
        st.info(advice.recommendation)
    except PricingError as e:
        st.error(str(e))
