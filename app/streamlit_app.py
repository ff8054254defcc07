import streamlit as st
from datetime import date

from billviz.app_logic import latest_bill_rates, latest_curve_table, result_frame
from billviz.config import MAX_YEAR, MIN_YEAR, Settings, setup_logging
from billviz.errors import InputError, UpstreamUnavailableError
from billviz.plots import plot_bill_curve, plot_yield_history
from billviz.service import YieldsService

st.set_page_config(page_title="BillViz", layout="wide")
setup_logging()


@st.cache_resource(show_spinner=False)
def get_service() -> YieldsService:
    # one service (and one cache) per process
    return YieldsService(settings=Settings.from_env())


st.title("BillViz")
st.header("Treasury Bill Rates")

today = date.today()
with st.sidebar.form("query_form"):
    year = st.number_input("Year", value=today.year, min_value=MIN_YEAR, max_value=MAX_YEAR, step=1)
    month_label = st.selectbox("Month", ["Latest", "All"] + [str(m) for m in range(1, 13)], index=0)
    st.form_submit_button("Load")

try:
    with st.spinner("Loading Treasury feed..."):
        if month_label == "Latest":
            # most recent published year; the year input is ignored
            result = latest_bill_rates(get_service(), today)
        else:
            month = None if month_label == "All" else int(month_label)
            result = get_service().get_yields(int(year), month)
except InputError as e:
    st.warning(str(e))
    st.stop()
except UpstreamUnavailableError as e:
    st.error(f"Treasury data is unavailable right now: {e}")
    st.stop()

df = result_frame(result)
if df.empty:
    st.info("No rates published for this period.")
    st.stop()

try:
    latest, obs_date, table = latest_curve_table(result)
except ValueError as e:
    st.info(str(e))
    st.stop()

st.subheader(f"Latest curve ({obs_date})")
cards = st.columns(len(table))
for col, (_, rec) in zip(cards, table.iterrows()):
    col.metric(rec["Maturity"], f"{rec['Yield (%)']:.2f}%")

c1, c2 = st.columns(2)
with c1:
    st.pyplot(plot_bill_curve(latest))
with c2:
    st.pyplot(plot_yield_history(df))

with st.expander("Raw data"):
    st.dataframe(df, width="stretch")

with st.sidebar.expander("Cache stats"):
    st.json(vars(get_service().stats))
