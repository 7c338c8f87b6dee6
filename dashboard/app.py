"""
Marketing Analytics Dashboard

GA4, Search Console and Google Ads performance from the API.
Run with `streamlit run dashboard/app.py`; Streamlit puts this directory on
the import path, so pages and data_loader import as top-level modules.
"""

import streamlit as st

from pages import analytics, google_ads, search_console

PAGES = {
    "📊 Analytics": analytics.render,
    "🔍 Search Console": search_console.render,
    "💰 Google Ads": google_ads.render,
}

st.set_page_config(
    page_title="Marketing Analytics",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)

# The sidebar radio drives navigation instead of Streamlit's pages/ list
st.markdown(
    "<style>[data-testid='stSidebarNav'] { display: none; }</style>",
    unsafe_allow_html=True,
)


def main():
    st.sidebar.title("Marketing Analytics")
    choice = st.sidebar.radio("Source", list(PAGES))

    st.sidebar.markdown("---")
    if st.sidebar.button("Refresh data"):
        st.cache_data.clear()
    st.sidebar.caption("API responses are cached for 10 minutes")

    PAGES[choice]()


if __name__ == "__main__":
    main()
