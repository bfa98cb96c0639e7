from __future__ import annotations
import logging
import streamlit as st
from gradeshare.errors import BackendError, DecodeError, InvalidShareLink, ShareError, ShareExpired, ShareNotFound
from gradeshare.ingest import parse_grades
from gradeshare.links import create_share, open_shared_link
from gradeshare.models import ShareOptions, ShareSnapshot
from gradeshare.stats import compute_stats, display_frame, grade_histogram, search_grades, sort_grades
from gradeshare.store import HttpShareStore
from gradeshare.utils import default_share_ttl

logging.basicConfig(level=logging.INFO)
st.set_page_config(page_title="Статистика оценок", layout="wide")
st.title("Статистика оценок по вставленному списку")
# =========================

# Helpers
# =========================
TTL_CHOICES = {
    "1 день": 60 * 60 * 24,
    "7 дней": 60 * 60 * 24 * 7,
    "30 дней": 60 * 60 * 24 * 30,
}

SORT_LABELS = {"student_name": "Имя", "grade": "Оценка", "status": "Статус"}


def _share_error_text(e: ShareError) -> str:
    # NotFound и Expired - разные состояния: ссылки нет vs ссылка устарела
    if isinstance(e, ShareExpired):
        return "Срок действия ссылки истёк."
    if isinstance(e, ShareNotFound):
        return "Ссылка не найдена (удалена или не существовала)."
    if isinstance(e, InvalidShareLink):
        return "Ссылка повреждена: нет идентификатора или ключа."
    if isinstance(e, DecodeError):
        return "Не удалось расшифровать данные ссылки (неверный ключ или повреждённые данные)."
    if isinstance(e, BackendError):
        return f"Сервис ссылок недоступен: {e}. Попробуйте ещё раз."
    return f"Ошибка ссылки: {e}"


def _load_from_query() -> None:
    # открываем ссылку один раз за сессию
    if st.session_state.get("query_loaded"):
        return
    st.session_state["query_loaded"] = True

    params = {k: st.query_params.get(k) for k in ("share", "data") if st.query_params.get(k)}
    if not params:
        return
    try:
        snap = open_shared_link(params, HttpShareStore())
    except ShareError as e:
        st.session_state["share_load_error"] = _share_error_text(e)
        return
    st.session_state["grades"] = list(snap.grades)
    st.session_state["options"] = snap.options


st.session_state.setdefault("grades", [])
st.session_state.setdefault("options", ShareOptions())
st.session_state.setdefault("share_link", "")
_load_from_query()

if st.session_state.get("share_load_error"):
    st.error(st.session_state["share_load_error"])
# =========================

# Ввод
# =========================
raw = st.text_area(
    "Вставьте список (Имя<TAB>Оценка, 'Имя - 8,5', или HTML-таблицу)",
    height=220,
)
if st.button("Разобрать", type="primary"):
    parsed = parse_grades(raw)
    if not parsed:
        st.error("Оценки не найдены.")
    st.session_state["grades"] = parsed
    st.session_state["share_link"] = ""

grades = st.session_state["grades"]
if not grades:
    st.info("Вставьте данные и нажмите «Разобрать».")
    st.stop()
# =========================

# Параметры
# =========================
opts0: ShareOptions = st.session_state["options"]
c1, c2, c3 = st.columns(3)
with c1:
    max_grade = st.number_input("Максимальная оценка", min_value=0.0, value=float(opts0.max_possible_grade))
with c2:
    pass_thr = st.number_input("Порог сдачи", min_value=0.0, value=float(opts0.pass_threshold))
with c3:
    normalize = st.toggle("Нормализовать (шкала 0-10)", value=bool(opts0.normalize_grades))

options = ShareOptions(max_possible_grade=float(max_grade), pass_threshold=float(pass_thr), normalize_grades=bool(normalize))
st.session_state["options"] = options
# =========================

# Статистика
# =========================
stats = compute_stats(grades, options)
m = st.columns(6)
m[0].metric("Студентов", stats.count)
m[1].metric("Среднее", f"{stats.average:.2f}")
m[2].metric("Медиана", f"{stats.median:.2f}")
m[3].metric("Мин / Макс", f"{stats.minimum:.1f} / {stats.maximum:.1f}")
m[4].metric("Ст. отклонение", f"{stats.std_dev:.2f}")
m[5].metric("Сдали", f"{stats.pass_rate:.1f}%")

hist = grade_histogram(grades, options)
if not hist.empty:
    st.subheader("Распределение оценок")
    st.bar_chart(hist.set_index("range")["count"])

st.subheader("Оценки")
f1, f2, f3 = st.columns(3)
with f1:
    q = st.text_input("Поиск по имени", value="")
with f2:
    sort_col = st.selectbox("Сортировка", list(SORT_LABELS.keys()), format_func=lambda x: SORT_LABELS[x])
with f3:
    ascending = st.radio("Порядок", ["по возрастанию", "по убыванию"], horizontal=True) == "по возрастанию"

view = search_grades(sort_grades(display_frame(grades, options), sort_col, ascending), q)
view = view.assign(status=view["passed"].map({True: "Сдал", False: "Не сдал"}))
cols = ["student_name", "grade", "status"]
if options.normalize_grades:
    cols.insert(2, "original_grade")
st.dataframe(
    view[cols].rename(columns={
        "student_name": "Имя",
        "grade": "Оценка (норм.)" if options.normalize_grades else "Оценка",
        "original_grade": "Исходная оценка",
        "status": "Статус",
    }),
    width="stretch",
    hide_index=True,
)
# =========================

# Ссылка
# =========================
st.divider()
st.subheader("Поделиться")
ttl_labels = list(TTL_CHOICES.keys())
default_ttl = default_share_ttl()
ttl_index = next((i for i, k in enumerate(ttl_labels) if TTL_CHOICES[k] == default_ttl), 1)
ttl_label = st.selectbox("Срок действия ссылки", ttl_labels, index=ttl_index)

if st.button("Создать зашифрованную ссылку"):
    snapshot = ShareSnapshot(grades=tuple(grades), options=options)
    try:
        st.session_state["share_link"] = create_share(snapshot, HttpShareStore(), ttl_seconds=TTL_CHOICES[ttl_label])
    except ShareError as e:
        # локальные данные не трогаем
        st.error(_share_error_text(e))

if st.session_state.get("share_link"):
    st.success("Ссылка создана. Ключ есть только в ссылке, сервер его не хранит.")
    st.code(st.session_state["share_link"], language=None)

st.caption(f"Показано записей: {len(view)} из {len(grades)}")
