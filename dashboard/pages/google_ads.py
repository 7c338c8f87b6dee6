"""
Google Ads - spend, campaigns and keyword performance.
"""

import streamlit as st
import pandas as pd

from data_loader import (
    date_range_picker,
    get_ads_data,
    show_error,
    format_currency,
    format_number,
    format_percent,
    format_trend,
)


def render():
    st.title("Google Ads")
    st.markdown("*Paid search spend and conversions*")

    start, end = date_range_picker("ads")

    with st.spinner("Loading Google Ads data..."):
        result = get_ads_data(start, end)
    if "error" in result:
        show_error(result)
        return

    data = result["data"]
    overview = data.get("overview", {})

    col1, col2, col3, col4, col5 = st.columns(5)
    with col1:
        st.metric("Spend", format_currency(overview.get("cost", 0)), format_trend(overview.get("costTrend", 0)),
                  delta_color="inverse")
    with col2:
        st.metric("Clicks", format_number(overview.get("clicks", 0)), format_trend(overview.get("clicksTrend", 0)))
    with col3:
        st.metric("Conversions", format_number(overview.get("conversions", 0)),
                  format_trend(overview.get("conversionsTrend", 0)))
    with col4:
        st.metric("Cost / Conv", format_currency(overview.get("costPerConversion", 0)),
                  format_trend(overview.get("costPerConversionTrend", 0)), delta_color="inverse")
    with col5:
        st.metric("ROAS", f"{overview.get('roas', 0):.1f}x")

    st.caption(
        f"Avg CPC {format_currency(overview.get('avgCPC', 0))} · "
        f"Avg CTR {format_percent(overview.get('avgCTR', 0), 2)}"
    )

    st.markdown("---")

    st.subheader("Spend (last 7 days)")
    spend = pd.DataFrame(data.get("spendOverTime", []))
    if not spend.empty:
        st.bar_chart(spend.set_index("date")["spend"])

    st.subheader("Campaigns")
    campaigns = pd.DataFrame(data.get("campaigns", []))
    if not campaigns.empty:
        campaigns = campaigns.rename(columns={
            "name": "Campaign",
            "status": "Status",
            "impressions": "Impr.",
            "clicks": "Clicks",
            "ctr": "CTR %",
            "spend": "Spend",
            "avgCPC": "Avg CPC",
            "conversions": "Conv.",
            "percentage": "Spend %",
        })
        st.dataframe(
            campaigns.style.format({"Spend": "${:,.2f}", "Avg CPC": "${:,.2f}"}),
            use_container_width=True,
            hide_index=True,
        )

    left, right = st.columns(2)

    with left:
        st.subheader("Devices")
        devices = pd.DataFrame(data.get("devices", []))
        if not devices.empty:
            st.dataframe(
                devices.rename(columns={"device": "Device", "percentage": "Impr. %"}),
                use_container_width=True,
                hide_index=True,
            )

    with right:
        st.subheader("Top Keywords")
        keywords = pd.DataFrame(data.get("keywords", []))
        if not keywords.empty:
            st.dataframe(
                keywords.rename(columns={
                    "keyword": "Keyword",
                    "clicks": "Clicks",
                    "cpc": "CPC",
                    "conversions": "Conv.",
                    "quality": "QS",
                    "percentage": "Click %",
                }),
                use_container_width=True,
                hide_index=True,
            )

    with st.expander("Ad Groups"):
        ad_groups = pd.DataFrame(data.get("adGroups", []))
        if not ad_groups.empty:
            st.dataframe(ad_groups, use_container_width=True, hide_index=True)

    st.subheader("Recommendations")
    for rec in data.get("recommendations", []):
        st.markdown(f"- **{rec['title']}** ({rec['impact']} impact, {rec['potential']})")
