import pytest

from signalform.core.config import ProviderConfig
from signalform.resources.heatmap_chart import HeatmapChartResource
from signalform.resources.list_chart import ListChartResource
from signalform.resources.single_value_chart import SingleValueChartResource
from signalform.resources.text_chart import TextChartResource
from signalform.resources.time_chart import TimeChartResource
from signalform.utils.validators import ValidationError

PROVIDER = ProviderConfig(auth_token="T", api_url="https://api.example/v2", app_url="https://app.example")
PROGRAM = "data('cpu.utilization').mean().publish('cpu')"


def _payload(resource_cls, **raw):
    raw.setdefault("name", "chart")
    cfg = resource_cls.parse_config(raw)
    return resource_cls(PROVIDER, lifecycle=None).build_payload(cfg)


# ----- time chart ---------------------------------------------------------------

def test_time_chart_defaults():
    payload = _payload(TimeChartResource, program_text=PROGRAM)
    assert payload == {
        "name": "chart",
        "description": "",
        "programText": PROGRAM,
        "options": {
            "type": "TimeSeriesChart",
            "stacked": False,
            "lineChartOptions": {"showDataMarkers": False},
        },
    }


def test_time_chart_full_options():
    opts = _payload(
        TimeChartResource,
        program_text=PROGRAM,
        unit_prefix="Binary",
        color_by="Metric",
        plot_type="AreaChart",
        show_data_markers=True,
        show_event_lines=True,
        stacked=True,
        axes_precision=4,
        axes_include_zero=True,
        minimum_resolution=60,
        max_delay=15,
        disable_sampling=True,
        time_range="-1h",
        on_chart_legend_dimension="plot_label",
        legend_fields_to_hide=["metric", "host"],
        viz_options=[
            {"label": "cpu", "color": "azure", "axis": "right", "plot_type": "ColumnChart", "value_unit": "Byte"},
        ],
        axis_left={"label": "pct", "min_value": 0, "high_watermark": 90},
    )["options"]

    assert opts["unitPrefix"] == "Binary"
    assert opts["colorBy"] == "Metric"
    assert opts["defaultPlotType"] == "AreaChart"
    assert opts["areaChartOptions"] == {"showDataMarkers": True}
    assert "lineChartOptions" not in opts
    assert opts["showEventLines"] is True and opts["stacked"] is True
    assert opts["axisPrecision"] == 4 and opts["includeZero"] is True
    assert opts["programOptions"] == {"minimumResolution": 60000, "maxDelay": 15000, "disableSampling": True}
    assert opts["time"] == {"range": 3600000, "type": "relative"}
    assert opts["onChartLegendOptions"] == {"showLegend": True, "dimensionInLegend": "sf_metric"}
    assert opts["legendOptions"] == {
        "fields": [
            {"property": "sf_originatingMetric", "enabled": False},
            {"property": "host", "enabled": False},
        ]
    }
    assert opts["publishLabelOptions"] == [
        {"label": "cpu", "paletteIndex": 2, "valueUnit": "Byte", "yAxis": 1, "plotType": "ColumnChart"}
    ]
    assert opts["axes"] == [
        {
            "min": 0.0,
            "max": None,
            "label": "pct",
            "highWatermark": 90.0,
            "highWatermarkLabel": "",
            "lowWatermark": None,
            "lowWatermarkLabel": "",
        },
        None,
    ]


@pytest.mark.parametrize("plot_type", ["ColumnChart", "Histogram"])
def test_time_chart_markers_only_for_line_and_area(plot_type):
    opts = _payload(TimeChartResource, program_text=PROGRAM, plot_type=plot_type)["options"]
    assert "lineChartOptions" not in opts and "areaChartOptions" not in opts


def test_time_chart_absolute_window():
    opts = _payload(TimeChartResource, program_text=PROGRAM, start_time=1500000000, end_time=1500000600)["options"]
    assert opts["time"] == {"start": 1500000000000, "end": 1500000600000, "type": "absolute"}


@pytest.mark.parametrize(
    "raw,message",
    [
        ({"plot_type": "PieChart"}, "plot_type: PieChart not allowed"),
        ({"time_range": "-5M"}, "time_range: -5M not allowed"),
        ({"max_delay": 1000}, "max_delay: 1000 not allowed"),
        ({"viz_options": [{"label": "a", "axis": "up"}]}, "viz_options[0].axis: up not allowed"),
        ({"viz_options": [{"label": "a", "color": "chartreuse"}]}, "viz_options[0].color: chartreuse not allowed"),
        ({"time_range": "-5m", "end_time": 1}, "time_range: conflicts with start_time/end_time"),
    ],
)
def test_time_chart_validation(raw, message):
    with pytest.raises(ValidationError) as ei:
        TimeChartResource.parse_config({"name": "c", "program_text": PROGRAM, **raw})
    assert any(e.startswith(message) for e in ei.value.errors), ei.value.errors


def test_program_text_required():
    with pytest.raises(ValidationError, match="program_text: required field is not set"):
        TimeChartResource.parse_config({"name": "c"})


# ----- list chart ---------------------------------------------------------------

def test_list_chart():
    opts = _payload(
        ListChartResource,
        program_text=PROGRAM,
        sort_by="-value",
        refresh_interval=30,
        max_precision=3,
        max_delay=0,
        viz_options=[{"label": "cpu", "value_suffix": "%"}],
    )["options"]
    assert opts == {
        "type": "List",
        "programOptions": {"maxDelay": 0, "disableSampling": False},
        "sortBy": "-value",
        "refreshInterval": 30000,
        "maximumPrecision": 3,
        "publishLabelOptions": [{"label": "cpu", "valueSuffix": "%"}],
    }


def test_list_chart_sort_by_needs_direction():
    with pytest.raises(ValidationError, match="must start either with"):
        ListChartResource.parse_config({"name": "c", "program_text": PROGRAM, "sort_by": "value"})


# ----- single value chart -------------------------------------------------------

def test_single_value_color_scale():
    opts = _payload(
        SingleValueChartResource,
        program_text=PROGRAM,
        color_by="Scale",
        color_scale=[{"gt": 90, "color": "red"}, {"lte": 90, "color": "green"}],
        is_timestamp_hidden=True,
    )["options"]
    assert opts["colorBy"] == "Scale"
    assert opts["colorScale"] == [{"gt": 90.0, "paletteIndex": 16}, {"lte": 90.0, "paletteIndex": 14}]
    assert opts["timestampHidden"] is True
    assert opts["showSparkLine"] is False
    assert "programOptions" not in opts


def test_single_value_scale_without_bands_sends_no_color_by():
    opts = _payload(SingleValueChartResource, program_text=PROGRAM, color_by="Scale")["options"]
    assert "colorBy" not in opts and "colorScale" not in opts


def test_single_value_other_color_by():
    opts = _payload(SingleValueChartResource, program_text=PROGRAM, color_by="Dimension", max_delay=5)["options"]
    assert opts["colorBy"] == "Dimension"
    assert opts["programOptions"] == {"maxDelay": 5000}


# ----- heatmap --------------------------------------------------------------------

def test_heatmap_color_range_and_sort():
    opts = _payload(
        HeatmapChartResource,
        program_text=PROGRAM,
        group_by=["host", "az"],
        sort_by="+host",
        color_range={"min_value": 0, "max_value": 100, "color": "blue"},
    )["options"]
    assert opts["groupBy"] == ["host", "az"]
    assert opts["sortProperty"] == "host" and opts["sortDirection"] == "Ascending"
    assert opts["colorBy"] == "Range"
    assert opts["colorRange"] == {"min": 0.0, "max": 100.0, "color": "blue"}
    assert opts["programOptions"] == {"disableSampling": False}
    assert opts["timestampHidden"] is False


def test_heatmap_color_scale():
    opts = _payload(
        HeatmapChartResource,
        program_text=PROGRAM,
        sort_by="-value",
        color_scale=[{"gte": 50, "color": "orange"}],
    )["options"]
    assert opts["sortDirection"] == "Descending"
    assert opts["colorBy"] == "Scale"
    assert opts["colorScale2"] == [{"gte": 50.0, "paletteIndex": 5}]


def test_heatmap_range_and_scale_conflict():
    with pytest.raises(ValidationError, match="color_range: conflicts with color_scale"):
        HeatmapChartResource.parse_config(
            {
                "name": "h",
                "program_text": PROGRAM,
                "color_range": {"color": "blue"},
                "color_scale": [{"gt": 1, "color": "red"}],
            }
        )


# ----- text chart ---------------------------------------------------------------

def test_text_chart():
    payload = _payload(TextChartResource, markdown="# Runbook\nsee wiki", description="notes")
    assert payload == {
        "name": "chart",
        "description": "notes",
        "options": {"type": "Text", "markdown": "# Runbook\nsee wiki"},
    }


def test_text_chart_requires_markdown():
    with pytest.raises(ValidationError, match="markdown: required field is not set"):
        TextChartResource.parse_config({"name": "t"})


def test_chart_ui_template():
    cfg = TextChartResource.parse_config({"name": "t", "markdown": "x"})
    state = TextChartResource(PROVIDER, lifecycle=None).bind_state(cfg)
    assert state.resource_url == "https://app.example/#/chart/<id>"
    cfg = TextChartResource.parse_config({"name": "t", "markdown": "x", "resource_url": "https://mirror/<id>"})
    assert TextChartResource(PROVIDER, lifecycle=None).bind_state(cfg).resource_url == "https://mirror/<id>"
