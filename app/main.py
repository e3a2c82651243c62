"""
Streamlit Frontend for SubTrack

The screens a user works with:
1. Login / registration / "start as guest"
2. Dashboard: reminders, totals, category and billing-day charts
3. Subscription list with edit and delete (delete asks first)
4. Entry form (monthly or yearly price, billing day, category, memo)
5. Feedback form

DESIGN PRINCIPLES:
1. The Session is resolved once per browser session and kept in
   st.session_state; every flow call receives it explicitly
2. Buttons are disabled while a call is in flight
3. Form input survives a failed submission
"""

import asyncio
import time
from datetime import date

import streamlit as st

from subtrack.audit import create_correlation_id
from subtrack.billing import monthly_preview
from subtrack.config import get_settings, validate_all_settings
from subtrack.models.entry import EntryCategory, FeedbackType, PricingPeriod
from subtrack.models.session import Session
from subtrack.orchestrator import (
    AuthFlow,
    FeedbackFlow,
    SubscriptionFlow,
    create_app_components,
)
from subtrack.services.storage import GoogleSheetsClient, is_valid_profile_id, new_profile_id


# Page configuration
st.set_page_config(
    page_title="SubTrack",
    page_icon="💳",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .reminder-box {
        padding: 16px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #d4af37;
        margin: 10px 0;
    }
    .guest-box {
        padding: 16px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def yen(amount) -> str:
    """Whole-unit display; stored amounts are never rounded."""
    symbol = get_settings().app.currency_symbol
    return f"{symbol}{round(amount):,}"


@st.cache_resource
def get_sheets_client():
    """One Google Sheets connection shared by all browser sessions."""
    try:
        return GoogleSheetsClient()
    except Exception:
        return None


def get_profile_id() -> str:
    """
    The browser profile whose guest data this session reads and writes.

    Kept in the URL so a reload or a bookmark returns to the same data.
    """
    profile_id = st.query_params.get("profile")
    if not is_valid_profile_id(profile_id):
        profile_id = new_profile_id()
        st.query_params["profile"] = profile_id
    return profile_id


def get_components() -> tuple[AuthFlow, SubscriptionFlow, FeedbackFlow]:
    """
    Per-browser-session components.

    The auth service remembers who signed in, so it must not be shared
    between sessions the way the sheets client is.
    """
    if "components" not in st.session_state:
        client = get_sheets_client()
        auth_flow, subscription_flow, feedback_flow, _ = create_app_components(
            profile_id=get_profile_id(),
            use_remote=client is not None,
            sheets_client=client,
        )
        st.session_state.components = (auth_flow, subscription_flow, feedback_flow)
    return st.session_state.components


def init_state(auth_flow: AuthFlow):
    if "session" not in st.session_state:
        st.session_state.session = run_async(auth_flow.bootstrap())
    defaults = {
        "busy": False,
        "show_form": False,
        "editing": None,
        "pending_delete": None,
        "form_data": {},
        "feedback_message": "",
        "feedback_message_until": 0.0,
        "auth_page": "login",
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def main():
    """Main application entry point."""
    auth_flow, subscription_flow, feedback_flow = get_components()
    init_state(auth_flow)

    session: Session = st.session_state.session
    if not (session.is_guest or session.is_authenticated):
        if st.session_state.auth_page == "register":
            render_register_page(auth_flow)
        else:
            render_login_page(auth_flow)
        return

    render_sidebar(auth_flow, session)
    render_dashboard_page(subscription_flow, session)
    render_feedback_form(feedback_flow)


# =============================================================================
# AUTH PAGES
# =============================================================================

def render_login_page(auth_flow: AuthFlow):
    st.title("SubTrack")
    st.markdown("サブスクリプション管理アプリ")

    with st.form("login_form"):
        email = st.text_input("メールアドレス")
        password = st.text_input("パスワード", type="password")
        submitted = st.form_submit_button(
            "ログイン中..." if st.session_state.busy else "ログイン",
            type="primary",
            disabled=st.session_state.busy,
        )

    if submitted:
        st.session_state.busy = True
        try:
            with st.spinner("ログイン中..."):
                result = run_async(auth_flow.sign_in(email, password))
        finally:
            st.session_state.busy = False
        if result.success:
            st.session_state.session = result.session
            st.rerun()
        else:
            st.error(result.message)

    if st.button("🚀 ゲストとして始める"):
        result = run_async(auth_flow.start_guest(create_correlation_id()))
        if result.success:
            st.session_state.session = result.session
            st.rerun()
        else:
            st.error(result.message)

    if st.button("アカウントをお持ちでない方はこちら"):
        st.session_state.auth_page = "register"
        st.rerun()


def render_register_page(auth_flow: AuthFlow):
    st.title("アカウント作成")
    st.markdown("SubTrackで賢くサブスク管理")

    with st.form("register_form"):
        email = st.text_input("メールアドレス")
        password = st.text_input("パスワード", type="password")
        confirm_password = st.text_input("パスワード（確認）", type="password")
        submitted = st.form_submit_button(
            "登録中..." if st.session_state.busy else "アカウント作成",
            type="primary",
            disabled=st.session_state.busy,
        )

    if submitted:
        st.session_state.busy = True
        try:
            with st.spinner("登録中..."):
                result = run_async(auth_flow.register(email, password, confirm_password))
        finally:
            st.session_state.busy = False
        if result.success:
            st.success(result.message)
            time.sleep(2)
            st.session_state.auth_page = "login"
            st.rerun()
        else:
            st.error(result.message)

    if st.button("すでにアカウントをお持ちの方はこちら"):
        st.session_state.auth_page = "login"
        st.rerun()


def render_sidebar(auth_flow: AuthFlow, session: Session):
    st.sidebar.title("💳 SubTrack")
    st.sidebar.markdown(f"**{session.identity.email}**")
    st.sidebar.markdown("---")

    if session.is_guest:
        if st.sidebar.button("サインアップ"):
            run_async(auth_flow.sign_out(session, create_correlation_id()))
            st.session_state.session = Session.unknown()
            st.session_state.auth_page = "register"
            st.rerun()
        if st.sidebar.button("ゲスト終了"):
            result = run_async(auth_flow.sign_out(session, create_correlation_id()))
            st.session_state.session = result.session
            st.session_state.auth_page = "login"
            st.rerun()
    else:
        if st.sidebar.button("ログアウト"):
            result = run_async(auth_flow.sign_out(session, create_correlation_id()))
            st.session_state.session = result.session
            st.session_state.auth_page = "login"
            st.rerun()

    with st.sidebar.expander("⚙️ 接続状態"):
        status = validate_all_settings()
        if status.get("google_sheets"):
            st.success("Google Sheets - 設定済み")
        else:
            st.warning("Google Sheets - 未設定（ゲストモードのみ利用可能）")


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(subscription_flow: SubscriptionFlow, session: Session):
    st.title("ダッシュボード")

    if session.is_guest:
        st.markdown("""
        <div class="guest-box">
            <strong>ゲストモードで利用中です。</strong>
            データはこの端末にのみ保存され、ゲスト終了時に削除されます。
        </div>
        """, unsafe_allow_html=True)

    view = run_async(subscription_flow.dashboard(session, date.today()))
    if view.error_message:
        st.error(view.error_message)

    if view.reminders:
        lines = []
        for reminder in view.reminders:
            when = "今日" if reminder.is_today else "明日"
            lines.append(
                f"<li>{reminder.entry.name} - {yen(reminder.entry.monthly_amount)}"
                f"（{when}請求）</li>"
            )
        st.markdown(f"""
        <div class="reminder-box">
            <h4>請求予定のリマインド</h4>
            <ul>{''.join(lines)}</ul>
        </div>
        """, unsafe_allow_html=True)

    summary = view.summary
    col1, col2, col3 = st.columns(3)
    col1.metric("月額合計", yen(summary.total))
    col2.metric("サブスク数", f"{summary.count}件")
    col3.metric("平均単価", yen(summary.average))

    if summary.count > 0:
        chart1, chart2 = st.columns(2)
        with chart1:
            st.subheader("カテゴリ別支出")
            st.bar_chart(
                {
                    "カテゴリ": [c.value for c in summary.by_category],
                    "金額": [float(a) for a in summary.by_category.values()],
                },
                x="カテゴリ",
                y="金額",
            )
        with chart2:
            st.subheader("今月の請求スケジュール")
            st.bar_chart(
                {
                    "請求日": [f"{d.day:02d}日" for d in summary.schedule],
                    "請求予定額": [float(d.amount) for d in summary.schedule],
                },
                x="請求日",
                y="請求予定額",
            )

    st.markdown("---")
    if st.button("➕ 新しいサブスクを追加", type="primary"):
        st.session_state.editing = None
        st.session_state.form_data = {}
        st.session_state.show_form = True
        st.rerun()

    if st.session_state.show_form:
        render_entry_form(subscription_flow, session)

    render_subscription_list(subscription_flow, session, view.entries)


def render_entry_form(subscription_flow: SubscriptionFlow, session: Session):
    editing = st.session_state.editing
    data = st.session_state.form_data
    categories = list(EntryCategory)

    st.subheader("サブスクを編集" if editing else "新しいサブスクを追加")

    # Not an st.form: the monthly preview updates while the amount is typed
    with st.container(border=True):
        name = st.text_input("サービス名 *", value=data.get("name", ""), placeholder="例: Netflix")
        pricing_period = st.selectbox(
            "料金タイプ *",
            options=list(PricingPeriod),
            index=list(PricingPeriod).index(PricingPeriod(data.get("pricing_period", PricingPeriod.MONTHLY))),
            format_func=lambda p: "月額" if p == PricingPeriod.MONTHLY else "年額",
        )
        amount = st.text_input(
            "料金 (円) *",
            value=str(data.get("amount", "")),
            placeholder="例: 1490（年額の場合は 17880）",
            help="年額を選んだ場合は12で割った月額として保存されます",
        )
        preview = monthly_preview(amount, pricing_period)
        if preview is not None:
            st.caption(f"月額換算: {yen(preview)}")
        billing_day = st.selectbox(
            "請求日 *",
            options=list(range(1, 32)),
            index=int(data.get("billing_day", 1)) - 1,
            format_func=lambda d: f"{d}日",
        )
        category = st.selectbox(
            "カテゴリ *",
            options=categories,
            index=categories.index(EntryCategory(data["category"])) if data.get("category") else 0,
            format_func=lambda c: c.value,
        )
        memo = st.text_area("メモ", value=data.get("memo") or "", placeholder="追加の情報があれば記入してください")

        col1, col2 = st.columns(2)
        submitted = col1.button(
            "保存中..." if st.session_state.busy else ("更新" if editing else "追加"),
            type="primary",
            disabled=st.session_state.busy,
            key="entry_form_submit",
        )
        cancelled = col2.button("キャンセル", key="entry_form_cancel")

    if cancelled:
        st.session_state.show_form = False
        st.session_state.editing = None
        st.session_state.form_data = {}
        st.rerun()

    if submitted:
        form_data = {
            "name": name,
            "pricing_period": pricing_period.value,
            "amount": amount,
            "billing_day": billing_day,
            "category": category.value,
            "memo": memo,
        }
        st.session_state.busy = True
        try:
            with st.spinner("保存中..."):
                result = run_async(subscription_flow.submit(
                    session,
                    form_data,
                    editing_id=editing,
                    correlation_id=create_correlation_id(),
                ))
        finally:
            st.session_state.busy = False

        if result.success:
            st.session_state.show_form = False
            st.session_state.editing = None
            st.session_state.form_data = {}
            st.rerun()
        else:
            st.session_state.form_data = result.form_data
            st.error(result.message)


def render_subscription_list(subscription_flow: SubscriptionFlow, session: Session, entries):
    st.subheader("登録済みのサブスク")

    if not entries:
        st.info("まだサブスクが登録されていません。「新しいサブスクを追加」から登録してください。")
        return

    header = st.columns([3, 2, 1, 2, 1, 1])
    for col, label in zip(header, ["サービス名", "月額料金", "請求日", "カテゴリ", "", ""]):
        col.markdown(f"**{label}**")

    for entry in entries:
        cols = st.columns([3, 2, 1, 2, 1, 1])
        cols[0].markdown(entry.name + (f"  \n_{entry.memo}_" if entry.memo else ""))
        cols[1].markdown(yen(entry.monthly_amount))
        cols[2].markdown(f"{entry.billing_day}日")
        cols[3].markdown(entry.category.value)
        if cols[4].button("編集", key=f"edit-{entry.id}"):
            st.session_state.editing = entry.id
            st.session_state.form_data = {
                # Stored amounts are monthly, so edits always start as monthly
                "name": entry.name,
                "pricing_period": PricingPeriod.MONTHLY.value,
                "amount": str(entry.monthly_amount),
                "billing_day": entry.billing_day,
                "category": entry.category.value,
                "memo": entry.memo or "",
            }
            st.session_state.show_form = True
            st.rerun()
        if cols[5].button("削除", key=f"delete-{entry.id}"):
            st.session_state.pending_delete = (entry.id, entry.name)
            st.rerun()

    pending = st.session_state.pending_delete
    if pending:
        entry_id, entry_name = pending
        st.warning(f"{entry_name}を削除しますか？")
        col1, col2 = st.columns(2)
        confirmed = col1.button("削除する", type="primary")
        declined = col2.button("キャンセル", key="cancel-delete")
        if confirmed or declined:
            result = run_async(subscription_flow.delete(
                session, entry_id, confirmed=confirmed, correlation_id=create_correlation_id()
            ))
            st.session_state.pending_delete = None
            if confirmed and not result.success:
                st.error(result.message)
            else:
                st.rerun()


# =============================================================================
# FEEDBACK
# =============================================================================

def render_feedback_form(feedback_flow: FeedbackFlow):
    st.markdown("---")

    # One-shot clear of the thank-you message
    if st.session_state.feedback_message and time.time() > st.session_state.feedback_message_until:
        st.session_state.feedback_message = ""

    with st.expander("フィードバックを送信"):
        st.markdown("SubTrackをより良いアプリにするため、ご意見をお聞かせください")
        if st.session_state.feedback_message:
            st.success(st.session_state.feedback_message)

        with st.form("feedback_form", clear_on_submit=True):
            feedback_type = st.selectbox(
                "種類 *",
                options=list(FeedbackType),
                format_func=lambda t: t.value,
            )
            title = st.text_input("タイトル *", max_chars=100, placeholder="例: カテゴリの追加機能が欲しい")
            description = st.text_area("詳細説明 *", max_chars=500)
            email = st.text_input("メールアドレス（任意）", help="返信が必要な場合のみご記入ください")
            submitted = st.form_submit_button("送信")

        if submitted:
            result = run_async(feedback_flow.submit({
                "feedback_type": feedback_type.value,
                "title": title,
                "description": description,
                "email": email,
            }, correlation_id=create_correlation_id()))
            if result.success:
                seconds = get_settings().app.feedback_message_seconds
                st.session_state.feedback_message = result.message
                st.session_state.feedback_message_until = time.time() + seconds
                st.rerun()
            else:
                for issue in result.issues:
                    st.error(f"{issue.field}: {issue.message}")
                if not result.issues:
                    st.error(result.message)


if __name__ == "__main__":
    main()
