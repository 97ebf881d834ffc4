import streamlit as st
import sys
import os
import json
import pandas as pd

from dotenv import load_dotenv
load_dotenv()

# --- PATH SETUP ---
# Lets `streamlit run src/ai_dashboard/ui/app.py` work without an install
src_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
if src_root not in sys.path:
    sys.path.insert(0, src_root)

from ai_dashboard.core.ingestion import load_dataset
from ai_dashboard.core.analyst_gateway import ask_analyst
from ai_dashboard.core.metrics import summarize, trend_insight
from ai_dashboard.core.visualization import generate_dashboard_charts
from ai_dashboard.core.session import ChatSession
from ai_dashboard.utils.exceptions import AppException, ConfigurationError, UnsupportedFileTypeError
from ai_dashboard.config import settings
from ai_dashboard.utils.logger import get_logger

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# PAGE CONFIG
# ---------------------------------------------------------------------------
st.set_page_config(page_title="AI Analytics Platform", page_icon="📊", layout="wide")
st.markdown("""
<style>
.stApp { background-color: #0E1117; }
.filter-banner {
    background: rgba(76,155,232,0.08);
    border-left: 3px solid #4C9BE8;
    padding: 10px 16px;
    border-radius: 6px;
    margin-bottom: 10px;
}
.insight-box {
    background: rgba(245,166,35,0.08);
    border-left: 3px solid #F5A623;
    padding: 14px 18px;
    border-radius: 6px;
    margin-bottom: 10px;
    line-height: 1.75;
}
</style>
""", unsafe_allow_html=True)

# ---------------------------------------------------------------------------
# SESSION STATE
# ---------------------------------------------------------------------------
if "chat" not in st.session_state:
    st.session_state.chat = ChatSession()
if "loaded_filename" not in st.session_state:
    st.session_state.loaded_filename = None

chat: ChatSession = st.session_state.chat


# ---------------------------------------------------------------------------
# HELPERS
# ---------------------------------------------------------------------------
def fmt_number(value: float) -> str:
    return f"{value:,.2f}".rstrip("0").rstrip(".")


# ---------------------------------------------------------------------------
# RENDER HELPERS
# ---------------------------------------------------------------------------
def render_filter_banner():
    view = chat.view
    if not view.active:
        return
    st.markdown(
        f'<div class="filter-banner"><b>Dashboard Filtered</b> · showing data for '
        f'<code>{view.context_label}</code> ({len(view.rows)} records)</div>',
        unsafe_allow_html=True,
    )


def render_metrics(rows):
    metrics = summarize(rows)
    if metrics is None:
        return
    c1, c2, c3, c4 = st.columns(4)
    c1.metric(f"Total ({metrics.column})", fmt_number(metrics.total))
    c2.metric("Average", f"{metrics.average:.2f}")
    c3.metric("Highest", fmt_number(metrics.maximum))
    c4.metric("Lowest", fmt_number(metrics.minimum))


def render_insights(rows):
    insight = trend_insight(rows)
    if insight is None:
        return
    change = "n/a" if insight.percent_change is None else f"{insight.percent_change:+.1f}%"
    label = "Growing" if insight.direction == "up" else "Declining"
    text = f"<b>{insight.metric}</b>: {change} ({label}). {insight.recommendation}"
    if insight.anomalies:
        text += f"<br/>⚠️ {insight.anomalies} outlier(s) found. Ask AI for detailed analysis."
    text += f"<br/>💡 Ask AI: \"{insight.suggested_question}\""
    st.markdown(f'<div class="insight-box">{text}</div>', unsafe_allow_html=True)


def render_charts(rows):
    charts = generate_dashboard_charts(rows, chat.context_label)
    if not charts:
        return
    cols = st.columns(2)
    for idx, (name, chart_json) in enumerate(charts.items()):
        try:
            fig = json.loads(chart_json)
            cols[idx % 2].plotly_chart(fig, use_container_width=True, key=f"chart_{name}")
        except (ValueError, TypeError) as e:
            st.warning(f"Could not render chart: {e}")


def notify_reply(reply):
    if reply.ok:
        return
    st.toast(reply.error, icon="❌")


# ---------------------------------------------------------------------------
# SIDEBAR
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("⚙️ Setup")

    env_key = os.getenv("GROQ_API_KEY")
    if env_key:
        st.success("✅ API Key loaded from .env")
        settings.GROQ_API_KEY = env_key
    else:
        user_key = st.text_input("Enter Groq API Key", type="password")
        if user_key:
            settings.GROQ_API_KEY = user_key
        else:
            st.warning("⚠️ No API key. Please enter one above.")

    st.markdown("---")

    uploaded_file = st.file_uploader("Upload CSV or Excel", type=["csv", "xlsx"])
    if uploaded_file and uploaded_file.name != st.session_state.loaded_filename:
        try:
            with st.spinner("Reading file..."):
                dataset = load_dataset(uploaded_file.read(), uploaded_file.name)
            chat.load_dataset(dataset)
            st.session_state.loaded_filename = uploaded_file.name
            st.toast("File uploaded successfully!", icon="✅")
        except UnsupportedFileTypeError as e:
            st.toast(e.message, icon="❌")
        except AppException as e:
            st.error(f"Error: {e.message}")

    if chat.dataset:
        st.caption(f"📄 {chat.dataset.filename}")
        st.caption(f"Rows: {len(chat.dataset.rows)}  |  Cols: {len(chat.dataset.columns)}")


# ---------------------------------------------------------------------------
# MAIN AREA
# ---------------------------------------------------------------------------
st.title("📊 AI Analytics Platform")
st.caption("Transform your sales and marketing data into actionable insights with AI-powered analytics")

# ── 1. Dashboard ──────────────────────────────────────────────────────────────
st.subheader("Analytics Dashboard")
if not chat.dataset:
    st.info("Upload a file to see dynamic visualizations")
else:
    rows = chat.view.rows
    render_filter_banner()
    render_metrics(rows)
    render_insights(rows)
    render_charts(rows)
    with st.expander("📋 View Data Table", expanded=False):
        st.dataframe(pd.DataFrame(rows), use_container_width=True)

# ── 2. Chat transcript ────────────────────────────────────────────────────────
st.subheader("AI Insights")
for msg in chat.transcript:
    with st.chat_message(msg.role.value):
        st.markdown(msg.content)

# ── 3. Chat input ─────────────────────────────────────────────────────────────
if prompt := st.chat_input("Ask a question about your data…"):
    turn = chat.begin_turn(prompt)
    if turn.view.active:
        st.toast(f"Dashboard updated for {turn.directive.value}", icon="🔎")
    elif turn.directive is not None and chat.dataset:
        st.toast(f"No rows matched {turn.directive.label}; showing all data", icon="ℹ️")

    with st.spinner("Analyzing…"):
        try:
            reply = ask_analyst(prompt, chat.dataset)
            notify_reply(reply)
            chat.complete_turn(turn, reply)
        except ConfigurationError as e:
            logger.warning(f"Chat request failed: {e.message}")
            st.toast("⚠️ Please enter your Groq API Key in the sidebar.", icon="❌")
            chat.fail_turn(turn)
        except AppException as e:
            logger.warning(f"Chat request failed: {e.message}")
            st.toast("Failed to get AI response. Please try again.", icon="❌")
            chat.fail_turn(turn)
        except Exception as e:
            logger.error(f"Unhandled error: {e}", exc_info=True)
            st.toast("Failed to get AI response. Please try again.", icon="❌")
            chat.fail_turn(turn)
    st.rerun()
