import streamlit as st

# Import using absolute route so it can be used as a package and launch the streamlit app
from rnaforce import app_viewer

st.set_page_config(page_title="RNAforce", layout="wide")

# ---------------- CUSTOM STYLES ----------------
st.markdown("""
    <style>

    /* Global Styles */
    html, body, [class*="css"] {
        font-family: 'Helvetica Neue', sans-serif;
        color: #333333;
    }

    :root {
        --primary-blue: #3b82f6;
        --deep-blue: #1e40af;
        --soft-gray: #e0e0e0;
        --medium-gray: #cccccc;
    }

    h1, h2, h3 {
        color: var(--deep-blue);
        font-weight: 600;
    }

    .block-container {
        padding-top: 2rem;
        padding-bottom: 2rem;
        padding-left: 3rem;
        padding-right: 3rem;
    }

    .stButton>button {
        background-color: var(--primary-blue);
        color: #ffffff;
        border-radius: 8px;
        border: none;
        font-weight: 600;
    }

    [data-testid="stSidebar"] {
        border-right: 1px solid var(--medium-gray);
        padding-top: 1rem;
    }

    [data-testid="stMetric"] {
        background-color: #f1f5f9;
        padding: 0.75rem;
        border-radius: 6px;
    }
</style>
""", unsafe_allow_html=True)


# Sidebar for navigation
with st.sidebar:
    st.header("RNAforce")
    selected_main_tab = st.radio(
        "Navigation",
        ["Viewer", "Help"],
        index=0
    )

# Main content (according to sidebar selection)
if selected_main_tab == "Help":
    app_viewer.help_tab()
elif selected_main_tab == "Viewer":
    app_viewer.structure_viewer_tab()
