"""
Search Console - organic search performance.
"""

import streamlit as st
import pandas as pd

from data_loader import (
    date_range_picker,
    get_gsc_data,
    show_error,
    format_number,
    format_percent,
    format_trend,
)


def render():
    st.title("Search Console")
    st.markdown("*Organic search clicks, impressions and rankings*")

    start, end = date_range_picker("gsc")
    site_url = st.sidebar.text_input("Site URL (optional)", key="gsc_site_url").strip() or None

    with st.spinner("Loading Search Console data..."):
        result = get_gsc_data(start, end, site_url)
    if "error" in result:
        show_error(result)
        return

    data = result["data"]
    overview = data.get("overview", {})

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Clicks", format_number(overview.get("totalClicks", 0)),
                  format_trend(overview.get("clicksTrend", 0)))
    with col2:
        st.metric("Impressions", format_number(overview.get("totalImpressions", 0)),
                  format_trend(overview.get("impressionsTrend", 0)))
    with col3:
        st.metric("Avg CTR", format_percent(overview.get("avgCTR", 0), 2))
    with col4:
        st.metric("Avg Position", f"{overview.get('avgPosition', 0):.1f}")

    st.markdown("---")

    st.subheader("Clicks Over Time")
    weekly = pd.DataFrame(data.get("clicksOverTime", []))
    if not weekly.empty:
        st.bar_chart(weekly.set_index("date")["clicks"])

    left, right = st.columns(2)

    with left:
        st.subheader("Top Queries")
        queries = pd.DataFrame(data.get("topQueries", []))
        if not queries.empty:
            st.dataframe(
                queries.rename(columns={
                    "query": "Query",
                    "clicks": "Clicks",
                    "impressions": "Impressions",
                    "ctr": "CTR %",
                    "position": "Position",
                    "percentage": "Share %",
                }),
                use_container_width=True,
                hide_index=True,
            )

    with right:
        st.subheader("Top Pages")
        pages = pd.DataFrame(data.get("topPages", []))
        if not pages.empty:
            st.dataframe(
                pages.rename(columns={
                    "page": "Page",
                    "clicks": "Clicks",
                    "impressions": "Impressions",
                    "ctr": "CTR %",
                    "percentage": "Share %",
                }),
                use_container_width=True,
                hide_index=True,
            )

    st.subheader("Indexing (estimated)")
    indexing = data.get("indexingStatus", {})
    cols = st.columns(len(indexing) or 1)
    for col, (status, count) in zip(cols, indexing.items()):
        with col:
            st.metric(status, format_number(count))
