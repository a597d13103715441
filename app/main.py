"""
Streamlit Frontend for the Family Living Calculator

A single page with five collapsible sections (family, children,
transport/taxi, general expenses, summary) bound to the session's
FormState.

DESIGN PRINCIPLES:
1. The form is the only state; everything on screen is derived from it
2. Every edit goes through FormStore, which saves immediately
3. Inputs are free text; unparseable amounts simply count as zero
4. Login problems show up as a message and never block the calculator

Inside Super Qi the webview opens the page with ?host=superqi&token=...
"""

import asyncio
from typing import Optional

import streamlit as st

from family_budget.audit import configure_logging
from family_budget.calculator import format_amount, to_count
from family_budget.calculator.totals import child_contribution, compute_totals
from family_budget.config import get_settings, validate_all_settings
from family_budget.models import (
    AccordionState,
    ChildType,
    MAX_CHILDREN,
    FormState,
    Section,
    YesNo,
)
from family_budget.orchestrator import AuthFlow, create_app_components
from family_budget.services.bridge import HostBridge, QueryParamsHost
from family_budget.store import FormStore, is_valid_client_id, new_client_id


# Page configuration
st.set_page_config(
    page_title="حاسبة المعيشة العائلية",
    page_icon="🧮",
    layout="centered",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .summary-row {
        display: flex;
        justify-content: space-between;
        padding: 10px 14px;
        margin: 6px 0;
        border-radius: 10px;
        background-color: #f1f5f9;
    }
    .income { border-left: 5px solid #0f766e; }
    .expense { border-left: 5px solid #b91c1c; }
    .surplus { border-left: 5px solid #0f766e; color: #0f766e; }
    .deficit { border-left: 5px solid #b91c1c; color: #b91c1c; }
</style>
""", unsafe_allow_html=True)


SECTION_TITLES = {
    Section.FAMILY: ("البيانات الأساسية", "معلومات العائلة"),
    Section.CHILDREN: ("تفاصيل الأطفال", "مصاريف الأبناء"),
    Section.TRANSPORT: ("التنقل والعمل", "النقل والعمل بالتكسي"),
    Section.GENERAL: ("مصاريف عامة", "الأكل والخدمات"),
    Section.SUMMARY: ("النتيجة", "ملخص الوارد والمصروف"),
}

INFANT_FIELDS = [
    ("doctor", "كلفة الطبيب شهرياً"),
    ("milk", "كلفة الحليب"),
    ("diapers", "كلفة الحفاضات"),
]

STUDENT_FIELDS = [
    ("school", "كلفة المدرسة شهرياً"),
    ("transport", "كلفة النقل شهرياً"),
    ("daily", "المصروف اليومي (يُحسب شهرياً)"),
    ("stationery", "القرطاسية (شهري)"),
]

YES_NO_LABELS = [(YesNo.YES, "نعم"), (YesNo.NO, "لا")]

CHILD_TYPE_LABELS = [
    (ChildType.INFANT, "رضيع (< سنتين)"),
    (ChildType.STUDENT, "طفل / طالب"),
]

WIDGET_PREFIX = "w_"
CLIENT_ID_PARAM = "cid"

# stored key -> FormState attribute, for fields whose names differ
FIELD_ATTRS = {
    "childrenCount": "children_count",
    "taxiIncome": "taxi_income",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# =============================================================================
# SESSION
# =============================================================================

def client_id() -> str:
    """
    Id of this browser's storage slot, kept in the page URL.

    A missing or malformed id is replaced with a fresh one, which
    starts an empty form.
    """
    current = st.query_params.get(CLIENT_ID_PARAM)
    if is_valid_client_id(current):
        return current
    fresh = new_client_id()
    st.query_params[CLIENT_ID_PARAM] = fresh
    return fresh


def init_session() -> None:
    """Build components, load the form and run the startup login, once per session."""
    if "form_store" in st.session_state:
        return

    host = QueryParamsHost.from_params(st.query_params.to_dict())
    form_store, auth_flow, bridge = create_app_components(
        host_object=host,
        auth_code_provider=host,
        client_id=client_id(),
    )
    st.session_state.form_store = form_store
    st.session_state.auth_flow = auth_flow
    st.session_state.bridge = bridge
    st.session_state.form = form_store.load()
    st.session_state.accordion = AccordionState()
    st.session_state.closed = False

    if bridge.is_present:
        bridge.ready()
        run_async(auth_flow.startup())


def form() -> FormState:
    return st.session_state.form


def form_store() -> FormStore:
    return st.session_state.form_store


def widget_key(*parts) -> str:
    return WIDGET_PREFIX + "_".join(str(p) for p in parts)


def clear_widgets(prefix: str = WIDGET_PREFIX) -> None:
    """Forget widget values so they re-initialize from the form."""
    for key in [k for k in st.session_state if str(k).startswith(prefix)]:
        del st.session_state[key]


def drop_stale_child_widgets(count: int) -> None:
    """Children past the new count are gone; so are their widgets."""
    for key in list(st.session_state):
        key = str(key)
        if not key.startswith(widget_key("child")):
            continue
        index = key[len(widget_key("child")) + 1:].split("_", 1)[0]
        if index.isdigit() and int(index) >= count:
            del st.session_state[key]


# =============================================================================
# CALLBACKS
# =============================================================================

def set_field(field: str, value) -> None:
    st.session_state.form = form_store().set_field(form(), field, value)
    if field == "childrenCount":
        drop_stale_child_widgets(len(form().children))


def on_field_widget_change(field: str, key: str) -> None:
    value = st.session_state[key]
    if isinstance(value, (int, float)):
        value = str(int(value))
    set_field(field, value)


def set_child_field(index: int, field: str, value) -> None:
    st.session_state.form = form_store().set_child_field(form(), index, field, value)


def on_child_widget_change(index: int, field: str, key: str) -> None:
    set_child_field(index, field, st.session_state[key])


def toggle_section(section: Section) -> None:
    st.session_state.accordion = st.session_state.accordion.toggle(section)


def reset_form() -> None:
    st.session_state.form = form_store().reset()
    clear_widgets()


# =============================================================================
# WIDGET HELPERS
# =============================================================================

def money_field(label: str, field: str, placeholder: str = "") -> None:
    """Free-text amount bound to a top-level form field."""
    key = widget_key(field)
    if key not in st.session_state:
        st.session_state[key] = getattr(form(), FIELD_ATTRS.get(field, field))
    st.text_input(
        label,
        key=key,
        placeholder=placeholder,
        on_change=on_field_widget_change,
        args=(field, key),
    )


def count_field(label: str, field: str, max_value: Optional[int] = None) -> None:
    """Non-negative integer bound to a top-level text field."""
    key = widget_key(field)
    if key not in st.session_state:
        st.session_state[key] = to_count(
            getattr(form(), FIELD_ATTRS.get(field, field)), maximum=max_value
        )
    st.number_input(
        label,
        min_value=0,
        max_value=max_value,
        step=1,
        key=key,
        on_change=on_field_widget_change,
        args=(field, key),
    )


def child_field(index: int, label: str, field: str) -> None:
    key = widget_key("child", index, field)
    if key not in st.session_state:
        st.session_state[key] = getattr(form().children[index], field)
    st.text_input(
        label,
        key=key,
        on_change=on_child_widget_change,
        args=(index, field, key),
    )


def chip_group(options, selected, on_click, args_for, key_prefix: str) -> None:
    """Row of buttons acting as a single-choice selector."""
    columns = st.columns(len(options))
    for column, (value, label) in zip(columns, options):
        with column:
            st.button(
                label,
                key=f"{key_prefix}_{value.value}",
                type="primary" if value == selected else "secondary",
                on_click=on_click,
                args=args_for(value),
            )


def section_header(section: Section) -> bool:
    """Render a section title with its show/hide toggle; returns expanded."""
    label, title = SECTION_TITLES[section]
    expanded = st.session_state.accordion.is_expanded(section)
    col1, col2 = st.columns([4, 1])
    with col1:
        st.caption(label)
        st.subheader(title)
    with col2:
        st.button(
            "إخفاء" if expanded else "عرض",
            key=f"toggle_{section.value}",
            on_click=toggle_section,
            args=(section,),
        )
    return expanded


def summary_row(label: str, value, css_class: str, arabic_digits: bool) -> None:
    st.markdown(f"""
    <div class="summary-row {css_class}">
        <span>{label}</span>
        <strong>{format_amount(value, arabic_digits)}</strong>
    </div>
    """, unsafe_allow_html=True)


# =============================================================================
# SECTIONS
# =============================================================================

def render_header(auth_flow: AuthFlow, bridge: HostBridge) -> None:
    """Title, environment badge and login status."""
    st.caption("Mini App • Super Qi")
    st.title("حاسبة المعيشة العائلية")
    st.markdown("تقدير شهري واقعي للعائلة العراقية • يعمل بدون اتصال • حفظ محلي تلقائي.")

    col1, col2 = st.columns([2, 1])
    with col1:
        st.info("داخل Super Qi" if bridge.is_present else "وضع المتصفح")
    with col2:
        auth = auth_flow.state
        if auth.is_authenticated:
            st.markdown(f"**مرحباً {auth.display_name}**")
        elif st.button(
            "جارٍ تسجيل الدخول..." if auth.loading else "تسجيل الدخول",
            disabled=not auth_flow.can_login,
        ):
            with st.spinner("جارٍ تسجيل الدخول..."):
                run_async(auth_flow.login_with_auth_code())
            st.rerun()

    if auth_flow.state.error:
        st.error(auth_flow.state.error)


def render_family_section() -> None:
    if not section_header(Section.FAMILY):
        return
    money_field("الراتب الشهري (دينار عراقي)", "salary", placeholder="مثال: 1200000")
    count_field("عدد الزوجات", "wives")
    count_field("عدد الأطفال", "childrenCount", max_value=MAX_CHILDREN)


def render_children_section(arabic_digits: bool) -> None:
    if not section_header(Section.CHILDREN):
        return
    children = form().children
    if not children:
        st.markdown("لا يوجد أطفال حالياً.")
        return

    for index, child in enumerate(children):
        with st.container(border=True):
            col1, col2 = st.columns([3, 2])
            with col1:
                st.markdown(f"**طفل #{index + 1}**")
            with col2:
                st.caption(
                    f"{'رضيع' if child.is_infant else 'طالب'} • "
                    f"{format_amount(child_contribution(child), arabic_digits)}"
                )

            child_field(index, "العمر (بالسنوات)", "age")

            st.markdown("الفئة")
            chip_group(
                CHILD_TYPE_LABELS,
                child.type,
                on_click=set_child_field,
                args_for=lambda value, i=index: (i, "type", value.value),
                key_prefix=widget_key("chip", index, "type"),
            )

            fields = INFANT_FIELDS if child.type == ChildType.INFANT else STUDENT_FIELDS
            for field, label in fields:
                child_field(index, label, field)


def render_transport_section() -> None:
    if not section_header(Section.TRANSPORT):
        return
    state = form()

    st.markdown("هل تمتلك سيارة؟")
    chip_group(
        YES_NO_LABELS,
        state.car,
        on_click=set_field,
        args_for=lambda value: ("car", value.value),
        key_prefix="chip_car",
    )
    if state.car != YesNo.YES:
        return

    st.markdown("هل تعمل بها تكسي؟")
    chip_group(
        YES_NO_LABELS,
        state.taxi,
        on_click=set_field,
        args_for=lambda value: ("taxi", value.value),
        key_prefix="chip_taxi",
    )
    if state.taxi == YesNo.YES:
        money_field("الوارد الشهري من التكسي", "taxiIncome")


def render_general_section() -> None:
    if not section_header(Section.GENERAL):
        return
    money_field("مصروف الأكل (شهري)", "food")
    money_field("الخدمات (كهرباء، ماء، مولدة، إنترنت)", "services")


def render_summary_section(arabic_digits: bool) -> None:
    if not section_header(Section.SUMMARY):
        return
    totals = compute_totals(form())

    summary_row("إجمالي الوارد", totals.total_income, "income", arabic_digits)
    summary_row("إجمالي المصروف", totals.total_expenses, "expense", arabic_digits)
    summary_row(
        "العجز" if totals.is_deficit else "المتبقي",
        totals.balance_magnitude,
        "deficit" if totals.is_deficit else "surplus",
        arabic_digits,
    )

    with st.container(border=True):
        st.markdown("**تفاصيل سريعة**")
        st.markdown(f"مصاريف الأطفال: **{format_amount(totals.child_expenses, arabic_digits)}**")
        st.markdown(f"الخدمات + الأكل: **{format_amount(totals.general, arabic_digits)}**")
        if totals.taxi_income > 0:
            st.markdown(f"وارد التكسي: **{format_amount(totals.taxi_income, arabic_digits)}**")


def render_settings_expander() -> None:
    """Reset control and configuration diagnostics."""
    with st.expander("⚙️ الإعدادات"):
        st.button("🗑️ مسح البيانات المحفوظة", on_click=reset_form)

        status = validate_all_settings()
        for name in ("auth", "storage", "app"):
            if status.get(name, False):
                st.success(f"✅ {name}")
            else:
                st.error(f"❌ {name} - {status.get(f'{name}_error', 'Not configured')}")


def main():
    """Main application entry point."""
    settings = get_settings()
    configure_logging(settings.app.log_level)
    init_session()

    if st.session_state.closed:
        st.info("تم إغلاق الميني آب.")
        st.stop()

    auth_flow: AuthFlow = st.session_state.auth_flow
    bridge: HostBridge = st.session_state.bridge
    arabic_digits = settings.app.arabic_digits

    render_header(auth_flow, bridge)
    st.markdown("---")
    render_family_section()
    st.markdown("---")
    render_children_section(arabic_digits)
    st.markdown("---")
    render_transport_section()
    st.markdown("---")
    render_general_section()
    st.markdown("---")
    render_summary_section(arabic_digits)

    if bridge.is_present:
        st.markdown("---")
        if st.button("إغلاق الميني آب", type="primary"):
            bridge.close()
            st.session_state.closed = True
            st.rerun()

    render_settings_expander()


if __name__ == "__main__":
    main()
