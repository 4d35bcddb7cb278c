"""
Streamlit Frontend for Daybook

One narrow card: date header, clock face (or shortcut links), the
AI weather card, and the pocket ledger panel.

DESIGN PRINCIPLES:
1. The page never waits on the AI service; it renders whatever state
   the dashboard currently holds
2. All dashboard state lives on one asyncio loop; the page only submits
   coroutines to it and reads the results
3. Fragments re-render the clock and the AI-driven boxes on a timer,
   so background updates show up without user interaction
"""

import asyncio
import html
import threading
from datetime import date

import streamlit as st

from daybook.clock import (
    format_clock,
    format_day_header,
    format_entry_time,
    format_month_day,
)
from daybook.config import DashboardSettings, get_settings, validate_all_settings
from daybook.models.ledger import CATEGORY_INFO, Category, normalize_amount_input
from daybook.models.weather import LoadingState
from daybook.orchestrator import Dashboard, create_app_components


# Page configuration
st.set_page_config(
    page_title="Daybook",
    page_icon="🌤️",
    layout="centered",
    initial_sidebar_state="collapsed",
)

# Custom CSS for the card look
st.markdown("""
<style>
    .block-container {
        max-width: 440px;
    }
    .stButton>button {
        width: 100%;
    }
    .day-header {
        text-align: center;
        font-size: 1.9em;
        font-weight: 700;
        color: #111827;
    }
    .day-header .weekday {
        color: #2563eb;
        margin-left: 0.4em;
    }
    .clock-face {
        text-align: center;
        font-size: 4.5em;
        font-weight: 700;
        letter-spacing: -0.04em;
        color: #030712;
    }
    .weather-range {
        text-align: center;
        color: #4b5563;
        font-weight: 700;
    }
    .weather-now {
        text-align: center;
        font-size: 2em;
        font-weight: 800;
    }
    .weather-comment {
        text-align: center;
        font-size: 1.2em;
        color: #1f2937;
        margin: 0.5em 0 1em 0;
        word-break: keep-all;
    }
    .weather-image {
        display: block;
        margin: 0 auto;
        width: 256px;
        height: 256px;
        border-radius: 50%;
        object-fit: cover;
        border: 4px solid white;
        box-shadow: 0 8px 30px rgba(0,0,0,0.12);
    }
    .image-missing {
        text-align: center;
        color: #9ca3af;
        padding: 3em 0;
    }
    .total-box {
        padding: 18px;
        background-color: #f9fafb;
        border-radius: 20px;
        display: flex;
        justify-content: space-between;
        align-items: center;
    }
    .total-box .amount {
        font-size: 1.5em;
        font-weight: 700;
    }
    .comment-box {
        padding: 14px;
        background: linear-gradient(to right, #eef2ff, #faf5ff);
        border: 1px solid #e0e7ff;
        border-radius: 16px;
        margin-top: 10px;
    }
    .comment-box .title {
        font-size: 0.75em;
        font-weight: 700;
        color: #818cf8;
    }
    .empty-history {
        text-align: center;
        color: #9ca3af;
        padding: 2em 0;
        border: 1px dashed #e5e7eb;
        border-radius: 16px;
    }
</style>
""", unsafe_allow_html=True)


SHORTCUTS = [
    ("📰", "뉴스", "https://news.naver.com"),
    ("✉️", "메일", "https://mail.naver.com"),
    ("✨", "Gemini", "https://gemini.google.com"),
    ("🎵", "음악", "https://music.youtube.com"),
]

LOOP_TIMEOUT_SECONDS = 30


class LoopThread:
    """One asyncio event loop running forever on a daemon thread."""

    def __init__(self):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run,
            name="daybook-loop",
            daemon=True,
        )
        self._thread.start()

    def _run(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()


@st.cache_resource
def get_loop() -> LoopThread:
    """The single event loop owned by this Streamlit server."""
    return LoopThread()


def run_async(coro):
    """Helper to run a coroutine on the dashboard loop and wait for it."""
    future = asyncio.run_coroutine_threadsafe(coro, get_loop().loop)
    return future.result(timeout=LOOP_TIMEOUT_SECONDS)


@st.cache_resource
def get_dashboard() -> Dashboard:
    """Get or create the running dashboard (cached)."""
    try:
        dashboard = create_app_components()
    except Exception as e:
        st.error(f"Failed to load settings, using defaults: {e}")
        dashboard = create_app_components(settings=DashboardSettings.model_construct())
    run_async(dashboard.start())
    return dashboard


def init_session_state():
    defaults = {
        "shortcuts_mode": False,
        "spending_open": False,
        "amount_input": "",
        "category": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def main():
    """Main application entry point."""
    init_session_state()
    dashboard = get_dashboard()

    render_settings_sidebar()

    if st.session_state.spending_open:
        render_spending_panel(dashboard)
        return

    render_clock(dashboard)
    render_center(dashboard)
    render_weather(dashboard)


# =============================================================================
# CLOCK AND SHORTCUTS
# =============================================================================

@st.fragment(run_every=1)
def render_clock(dashboard: Dashboard):
    """Date header and clock face, refreshed every second."""
    now = dashboard.clock.current
    day_label, weekday = format_day_header(now)
    st.markdown(
        f'<div class="day-header">{day_label}<span class="weekday">{weekday}</span></div>',
        unsafe_allow_html=True,
    )
    if not st.session_state.shortcuts_mode:
        st.markdown(f'<div class="clock-face">{format_clock(now)}</div>', unsafe_allow_html=True)


def toggle_shortcuts():
    st.session_state.shortcuts_mode = not st.session_state.shortcuts_mode


def open_spending(dashboard: Dashboard):
    run_async(dashboard.spending.reset_to_today())
    st.session_state.spending_open = True


def close_spending():
    st.session_state.spending_open = False


def render_center(dashboard: Dashboard):
    """Clock toggle, or the shortcut links when shortcut mode is on."""
    if not st.session_state.shortcuts_mode:
        st.button("바로가기", on_click=toggle_shortcuts, type="tertiary")
        return

    cols = st.columns(len(SHORTCUTS) + 1)
    with cols[0]:
        st.button("👛 가계부", on_click=open_spending, args=(dashboard,))
    for col, (icon, label, url) in zip(cols[1:], SHORTCUTS):
        with col:
            st.link_button(f"{icon} {label}", url)
    st.button("닫기", on_click=toggle_shortcuts)


# =============================================================================
# WEATHER
# =============================================================================

@st.fragment(run_every=2)
def render_weather(dashboard: Dashboard):
    """Weather card; re-rendered so background fetches show up."""
    state = dashboard.weather.state
    data = state.snapshot

    if state.status == LoadingState.LOADING and data is None:
        st.markdown('<div class="image-missing">⏳ 날씨 분석 중...</div>', unsafe_allow_html=True)
        return

    if data is None:
        return

    st.markdown(
        f'<div class="weather-range">Low: {data.low_temp}° &nbsp; High: {data.high_temp}°</div>',
        unsafe_allow_html=True,
    )
    st.markdown(
        f'<div class="weather-now">{data.icon.value} {data.current_temp}°</div>',
        unsafe_allow_html=True,
    )
    st.markdown(
        f'<div class="weather-comment">"{html.escape(data.comment)}"</div>',
        unsafe_allow_html=True,
    )

    if state.image_url:
        st.markdown(
            f'<img class="weather-image" src="{state.image_url}" alt="AI Weather"/>',
            unsafe_allow_html=True,
        )
    elif state.status == LoadingState.LOADING:
        st.markdown('<div class="image-missing">⏳</div>', unsafe_allow_html=True)
    else:
        st.markdown('<div class="image-missing">🖼️ 이미지 생성 실패</div>', unsafe_allow_html=True)

    if state.status == LoadingState.ERROR:
        st.caption("⚠️ 최신 날씨를 가져오지 못했습니다.")

    if data.news_link:
        st.markdown(f"📰 [오늘의 뉴스]({data.news_link})")
    if data.sources:
        with st.expander("출처"):
            for source in data.sources:
                st.markdown(f"- [{source.title or source.uri}]({source.uri})")


# =============================================================================
# SPENDING
# =============================================================================

def normalize_amount():
    """Keep only digits in the amount field, shown with separators."""
    st.session_state.amount_input = normalize_amount_input(
        st.session_state.amount_input, get_settings_max_amount()
    )


def get_settings_max_amount() -> int:
    try:
        return get_settings().dashboard.max_amount
    except Exception:
        return DashboardSettings.model_construct().max_amount


def choose_category(category: Category):
    st.session_state.category = category.value


def submit_transaction(dashboard: Dashboard):
    added = run_async(
        dashboard.spending.add(st.session_state.amount_input, st.session_state.category)
    )
    if added is not None:
        st.session_state.amount_input = ""
        st.session_state.category = None


def delete_transaction(dashboard: Dashboard, transaction_id: str):
    run_async(dashboard.spending.remove(transaction_id))


def render_spending_panel(dashboard: Dashboard):
    """The ledger: input, day total, history and the AI comment."""
    header, close = st.columns([5, 1])
    with header:
        st.subheader("가계부")
    with close:
        st.button("✕", on_click=close_spending)

    tracker = dashboard.spending
    day = run_async(tracker.current_view()).day
    day_label = format_month_day(day)

    # Input
    st.text_input(
        f"{day_label} 지출 입력",
        key="amount_input",
        placeholder="0",
        on_change=normalize_amount,
    )

    cols = st.columns(len(CATEGORY_INFO))
    for col, (category, info) in zip(cols, CATEGORY_INFO.items()):
        with col:
            selected = st.session_state.category == category.value
            st.button(
                f"{info.icon} {info.label}",
                key=f"category_{category.value}",
                type="primary" if selected else "secondary",
                on_click=choose_category,
                args=(category,),
            )

    can_submit = bool(st.session_state.amount_input) and st.session_state.category is not None
    st.button(
        "➕ 기록하기",
        type="primary",
        disabled=not can_submit,
        on_click=submit_transaction,
        args=(dashboard,),
    )

    # Day picker
    picked = st.date_input("날짜", value=day, format="YYYY.MM.DD")
    if isinstance(picked, date) and picked != day:
        run_async(tracker.select_day(picked))
        st.rerun()

    render_spending_view(dashboard)


@st.fragment(run_every=1)
def render_spending_view(dashboard: Dashboard):
    """Total, history and comment for the selected day."""
    view = run_async(dashboard.spending.current_view())
    day_label = format_month_day(view.day)

    if view.save_error:
        st.warning(f"⚠️ 저장하지 못했습니다: {view.save_error}")

    st.markdown(f"""
    <div class="total-box">
        <span>{day_label} 쓴 돈</span>
        <span class="amount">₩{view.total:,}</span>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("#### 소비 내역")
    if not view.transactions:
        st.markdown(
            f'<div class="empty-history">{day_label} 내역이 없습니다.</div>',
            unsafe_allow_html=True,
        )
    for transaction in view.transactions:
        info = transaction.info
        label_col, amount_col, delete_col = st.columns([4, 2, 1])
        with label_col:
            st.markdown(f"{info.icon} **{info.label}**")
            st.caption(format_entry_time(transaction.timestamp))
        with amount_col:
            st.markdown(f"**-{transaction.amount:,}**")
        with delete_col:
            st.button(
                "🗑️",
                key=f"delete_{transaction.id}",
                on_click=delete_transaction,
                args=(dashboard, transaction.id),
            )

    commentary = view.commentary
    icon = "⏳" if commentary.loading else "✨"
    text = (
        "지출 내역을 분석하고 있어요..."
        if commentary.loading
        else f'"{html.escape(commentary.comment)}"'
    )
    st.markdown(f"""
    <div class="comment-box">
        <div class="title">{icon} Gemini's Comment</div>
        <div>{text}</div>
    </div>
    """, unsafe_allow_html=True)


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_sidebar():
    """Connection status, as in a settings page."""
    st.sidebar.title("🌤️ Daybook")
    with st.sidebar.expander("⚙️ Settings"):
        status = validate_all_settings()
        for name, key in [("Gemini (AI)", "gemini"), ("Dashboard", "dashboard")]:
            if status.get(key, False):
                st.success(f"✅ {name} - Configured")
            else:
                error = status.get(f"{key}_error", "Not configured")
                st.error(f"❌ {name} - {error}")
        st.markdown(
            "To configure the application, create a `.env` file with your API key. "
            "See `.env.example` for the available variables."
        )


if __name__ == "__main__":
    main()
