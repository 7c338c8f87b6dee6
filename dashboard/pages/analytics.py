"""
Analytics - GA4 traffic, acquisition and engagement.
"""

import streamlit as st
import pandas as pd

from data_loader import (
    date_range_picker,
    get_ga4_data,
    show_error,
    format_number,
    format_percent,
    format_trend,
)


def render():
    st.title("Analytics")
    st.markdown("*Google Analytics 4 traffic and engagement*")

    start, end = date_range_picker("ga4")
    property_id = st.sidebar.text_input("Property ID (optional)", key="ga4_property_id").strip() or None

    with st.spinner("Loading GA4 data..."):
        result = get_ga4_data(start, end, property_id)
    if "error" in result:
        show_error(result)
        return

    data = result["data"]
    overview = data.get("overview", {})

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Sessions", format_number(overview.get("sessions", 0)),
                  format_trend(overview.get("sessionsTrend", 0)))
    with col2:
        st.metric("Active Users", format_number(overview.get("activeUsers", 0)),
                  format_trend(overview.get("activeUsersTrend", 0)))
    with col3:
        st.metric("Page Views", format_number(overview.get("pageViews", 0)),
                  format_trend(overview.get("pageViewsTrend", 0)))
    with col4:
        st.metric("Engagement Rate", format_percent(overview.get("engagementRate", 0), 2),
                  format_trend(overview.get("engagementRateTrend", 0)))

    realtime = data.get("realtime", {})
    st.caption(
        f"Right now: {realtime.get('activeUsers', 0)} active users, "
        f"~{realtime.get('eventsPerMinute', 0)} events/min"
    )

    st.markdown("---")

    left, right = st.columns(2)

    with left:
        st.subheader("Daily Users")
        daily = pd.DataFrame(data.get("dailyUsers", []))
        if not daily.empty:
            st.bar_chart(daily.set_index("date")[["users", "sessions"]])

    with right:
        st.subheader("Acquisition")
        acquisition = data.get("acquisition", {})
        acquisition_df = pd.DataFrame([
            {"Source": name.title(), "Share": acquisition.get(name, 0)}
            for name in ("organic", "direct", "referral", "social", "paid")
        ])
        st.bar_chart(acquisition_df.set_index("Source")["Share"])
        st.caption(f"{format_number(acquisition.get('totalSessions', 0))} sessions")

    st.subheader("Channels")
    channels = pd.DataFrame(data.get("channels", []))
    if not channels.empty:
        st.dataframe(
            channels.rename(columns={
                "channel": "Channel",
                "sessions": "Sessions",
                "users": "Users",
                "percentage": "Share %",
            }),
            use_container_width=True,
            hide_index=True,
        )

    st.subheader("Sources")
    sources = pd.DataFrame(data.get("sources", []))
    if not sources.empty:
        st.dataframe(
            sources.rename(columns={
                "source": "Source",
                "sessions": "Sessions",
                "users": "Users",
                "percentage": "Share %",
            }),
            use_container_width=True,
            hide_index=True,
        )

    left, right = st.columns(2)

    with left:
        st.subheader("Top Pages")
        pages = pd.DataFrame(data.get("topPages", []))
        if not pages.empty:
            st.dataframe(
                pages.rename(columns={"path": "Page", "views": "Views", "avgTime": "Avg Time", "percentage": "Share %"}),
                use_container_width=True,
                hide_index=True,
            )

    with right:
        st.subheader("Devices")
        devices = pd.DataFrame(data.get("deviceBreakdown", []))
        if not devices.empty:
            st.dataframe(
                devices.rename(columns={"device": "Device", "users": "Users", "sessions": "Sessions",
                                        "percentage": "Share %"}),
                use_container_width=True,
                hide_index=True,
            )

    st.subheader("Events")
    events = pd.DataFrame(data.get("events", []))
    if not events.empty:
        st.dataframe(
            events.rename(columns={"name": "Event", "count": "Count", "trend": "Trend %", "percentage": "Share %"}),
            use_container_width=True,
            hide_index=True,
        )

    with st.expander("Landing Pages"):
        landing = pd.DataFrame(data.get("landingPages", []))
        if not landing.empty:
            st.dataframe(landing, use_container_width=True, hide_index=True)
