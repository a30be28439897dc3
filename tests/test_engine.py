import numpy as np
import pytest

import heatcanvas
from heatcanvas import config
from heatcanvas.domain.errors import HeatmapConfigError, SurfaceError
from heatcanvas.engine import HeatmapEngine


def _outside_square(arr, cx, cy, half):
    ys, xs = np.mgrid[0:arr.shape[0], 0:arr.shape[1]]
    return (np.abs(xs - cx) > half) | (np.abs(ys - cy) > half)


def test_create_ignores_unknown_options():
    engine = heatcanvas.create({"radius": 5, "width": 10, "height": 12, "legend": True, "foo": 1})
    assert engine.radius == 5
    assert (engine.width, engine.height) == (10, 12)


def test_defaults():
    engine = HeatmapEngine()
    assert engine.radius == 40
    assert engine.opacity == 180
    assert engine.visible is True
    assert engine.max == 1
    assert (engine.width, engine.height) == (0, 0)
    assert len(engine.palette) == 256


def test_opacity_percentage_is_scaled_to_255():
    assert HeatmapEngine(opacity=50).opacity == 128
    assert HeatmapEngine(opacity=100).opacity == 255


def test_zero_opacity_hides_everything(make_engine):
    assert HeatmapEngine(opacity=None).opacity == 180
    engine = make_engine(opacity=0)
    assert engine.opacity == 0
    engine.add_point(50, 50)
    assert engine.alpha_surface.pixel(50, 50)[3] > 0
    assert engine.visible_surface.pixel(50, 50)[3] == 0


@pytest.mark.parametrize("options", [{"radius": 0}, {"opacity": 150}, {"gradient": {}}, {"width": -1}, {"radius": "big"}])
def test_bad_configuration_raises(options):
    with pytest.raises(HeatmapConfigError):
        HeatmapEngine(options)


def test_negative_points_change_nothing(make_engine):
    engine = make_engine()
    engine.add_point(40, 40)
    before_visible = engine.visible_surface.to_array()
    before_alpha = engine.alpha_surface.to_array()
    engine.add_point(-1, 10)
    engine.add_point(10, -5, 3)
    assert engine.store.grid() == {40: {40: 1}}
    assert engine.max == 1
    assert np.array_equal(engine.visible_surface.to_array(), before_visible)
    assert np.array_equal(engine.alpha_surface.to_array(), before_alpha)


def test_single_point_scenario(make_engine):
    engine = make_engine()
    engine.add_point(50, 50, 1)
    assert engine.max == 1
    r, g, b, a = engine.visible_surface.pixel(50, 50)
    assert a == engine.opacity
    level = engine.alpha_surface.pixel(50, 50)[3]
    assert (r, g, b) == engine.palette[level][:3]
    arr = engine.visible_surface.to_array()
    assert arr[_outside_square(arr, 50, 50, 15), 3].max() == 0


def test_rescale_scenario(make_engine):
    engine = make_engine()
    engine.add_point(10, 10, 1)
    engine.add_point(10, 10, 5)
    assert engine.store.grid() == {10: {10: 6}}
    assert engine.max == 6
    arr = engine.visible_surface.to_array()
    assert arr[_outside_square(arr, 10, 10, 15), 3].max() == 0
    assert engine.visible_surface.pixel(10, 10)[3] == engine.opacity


def test_rescale_matches_bulk_load(make_engine):
    live = make_engine()
    live.add_point(20, 20, 1)
    live.add_point(60, 60, 1)
    live.add_point(60, 60, 2)
    assert live.max == 3

    bulk = make_engine()
    bulk.load_grid(live.store.grid(), live.max)
    assert np.array_equal(live.visible_surface.to_array(), bulk.visible_surface.to_array())
    assert np.array_equal(live.alpha_surface.to_array(), bulk.alpha_surface.to_array())


def test_rescale_renormalizes_older_points(make_engine):
    engine = make_engine()
    engine.add_point(20, 20, 1)
    before = engine.alpha_surface.pixel(20, 20)[3]
    engine.add_point(70, 70, 4)
    assert engine.alpha_surface.pixel(20, 20)[3] < before


def test_load_data_set_round_trip(make_engine):
    engine = make_engine()
    triples = [[1, 2, 3], [10, 20, 5], [30, 40, 1]]
    engine.load_data_set({"max": 5, "data": triples})
    assert sorted(engine.data_set()["data"]) == sorted(triples)
    assert engine.data_set()["max"] == 5
    assert engine.visible_surface.pixel(10, 20)[3] == engine.opacity


def test_load_data_set_replaces_previous_state(make_engine):
    engine = make_engine()
    engine.add_point(80, 80, 2)
    engine.load_data_set({"max": 1, "data": [[10, 10, 1]]})
    assert engine.store.grid() == {10: {10: 1}}
    assert engine.visible_surface.pixel(80, 80)[3] == 0


def test_load_data_set_requires_mapping(make_engine):
    with pytest.raises(TypeError):
        make_engine().load_data_set([[1, 1, 1]])


def test_points_without_count_are_drawn_faintly_but_not_stored(make_engine):
    engine = make_engine()
    engine.load_data_set({"max": 1, "data": [[50, 50], [20, 20, 0]]})
    assert engine.store.grid() == {}
    assert engine.data_set()["data"] == []
    for x, y in ((50, 50), (20, 20)):
        a = engine.alpha_surface.pixel(x, y)[3]
        assert 10 <= a <= 40
        assert engine.visible_surface.pixel(x, y)[3] == a
    assert engine.alpha_surface.pixel(80, 80)[3] == 0


def test_faint_points_survive_rescale(make_engine):
    engine = make_engine()
    engine.load_data_set({"max": 1, "data": [[20, 20], [70, 70, 1]]})
    before = engine.alpha_surface.pixel(20, 20)[3]
    engine.add_point(70, 70, 4)
    assert engine.alpha_surface.pixel(20, 20)[3] == before > 0


@pytest.mark.parametrize("bad_max", [float("nan"), float("inf"), -5])
def test_load_data_set_with_unusable_max_uses_data(make_engine, bad_max):
    engine = make_engine()
    engine.load_data_set({"max": bad_max, "data": [[10, 10, 3]]})
    assert engine.max == 3
    assert engine.visible_surface.pixel(10, 10)[3] == engine.opacity
    engine.add_point(10, 10, 5)
    assert engine.max == 8
    assert engine.store.grid() == {10: {10: 8}}


def test_load_empty_data_set_with_negative_max(make_engine):
    engine = make_engine()
    engine.load_data_set({"max": -5, "data": []})
    assert engine.max == 1


def test_clear_then_add_matches_fresh_engine(make_engine):
    used = make_engine()
    used.add_point(10, 10, 5)
    used.add_point(70, 20, 2)
    used.clear()
    # max is reset on clear, so no stale normalization
    assert used.max == 1
    assert len(used.store) == 0
    used.add_point(30, 30, 1)

    fresh = make_engine()
    fresh.add_point(30, 30, 1)
    assert np.array_equal(used.visible_surface.to_array(), fresh.visible_surface.to_array())
    assert np.array_equal(used.alpha_surface.to_array(), fresh.alpha_surface.to_array())


def test_configured_max_survives_clear(make_engine):
    engine = make_engine(max=10)
    assert engine.max == 10
    engine.add_point(50, 50, 3)
    assert engine.max == 10
    engine.clear()
    assert engine.max == 10


def test_resize_discards_pixels_but_keeps_data(make_engine):
    engine = make_engine()
    engine.add_point(50, 50)
    engine.resize(60, 40)
    assert (engine.width, engine.height) == (60, 40)
    arr = engine.visible_surface.to_array()
    assert arr.shape == (40, 60, 4)
    assert arr.max() == 0
    assert engine.store.get(50, 50) == 1
    engine.add_point(30, 20)
    assert engine.visible_surface.pixel(30, 20)[3] == engine.opacity


def test_hidden_engine_defers_colorize(make_engine):
    engine = make_engine(visible=False)
    engine.add_point(50, 50)
    assert engine.visible_surface.to_array().max() == 0
    assert engine.alpha_surface.pixel(50, 50)[3] > 0
    engine.set_visible(True)
    assert engine.visible_surface.pixel(50, 50)[3] == engine.opacity


def test_exports(make_engine):
    engine = make_engine()
    engine.add_point(50, 50)
    assert engine.export_data_url().startswith("data:image/png;base64,")
    assert engine.export_buffer().startswith(b"\x89PNG")


def test_zero_size_engine_accepts_points_but_cannot_export():
    engine = HeatmapEngine()
    engine.add_point(5, 5)
    assert engine.store.get(5, 5) == 1
    with pytest.raises(SurfaceError):
        engine.export_buffer()


def test_premultiplied_surface_is_compensated(monkeypatch, make_engine):
    monkeypatch.setattr(config, "SURFACE_FORMAT", "RGBA8888_Premultiplied")
    engine = make_engine()
    assert engine.premultiply_alpha is True
    engine.add_point(50, 50)
    r, g, b, a = engine.visible_surface.pixel(50, 50)
    assert a == engine.opacity
    level = engine.alpha_surface.pixel(50, 50)[3]
    expected = [int(np.rint(c * a / 255.0)) for c in engine.palette[level][:3]]
    assert [r, g, b] == expected


def test_unknown_surface_format(monkeypatch):
    monkeypatch.setattr(config, "SURFACE_FORMAT", "CMYK")
    with pytest.raises(SurfaceError):
        HeatmapEngine(width=10, height=10)
