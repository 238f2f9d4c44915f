"""Seed tile orientation, mirror compositing and the preview pipeline."""

from __future__ import annotations

import numpy as np
import pytest

from refract.config import BACKGROUND_COLOR, QUADRANT_FLIPS, QualityTier, QuadrantIndex
from refract.partition import partition
from refract.preprocess import preprocess
from refract.raster import Midpoint, PixelBounds, RasterBuffer
from refract.symmetry import (
    PreviewResult,
    RenderParams,
    compose,
    generate_pattern,
    generate_symmetries,
    normalize,
    render_preview,
)

MARKER = (255, 0, 255, 255)
BG = np.array(BACKGROUND_COLOR, dtype=np.uint8)


def _coordinate_image(width: int, height: int) -> RasterBuffer:
    """Every pixel encodes its own position so flips are easy to check."""
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    ys, xs = np.mgrid[0:height, 0:width]
    pixels[:, :, 0] = xs
    pixels[:, :, 1] = ys
    pixels[:, :, 2] = (xs * 7 + ys * 13) % 251
    pixels[:, :, 3] = 255
    return RasterBuffer(pixels)


def _marked_seed(width: int, height: int) -> RasterBuffer:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :, 3] = 255
    pixels[0, 0] = MARKER
    return RasterBuffer(pixels)


def _row(values) -> RasterBuffer:
    pixels = np.zeros((1, len(values), 4), dtype=np.uint8)
    pixels[0, :, 0] = values
    pixels[0, :, 3] = 255
    return RasterBuffer(pixels)


def _is_background(region: np.ndarray) -> bool:
    return bool(np.all(region == BG))


# ---------------------------------------------------------------------------
# Tests: orientation normalizer
# ---------------------------------------------------------------------------


class TestNormalize:
    @pytest.mark.parametrize("quadrant", list(QuadrantIndex))
    def test_flip_table_applied(self, quadrant):
        canonical = _coordinate_image(10, 8)
        rect = partition(10, 8, Midpoint(0.3, 0.75))[quadrant]
        bounds = rect.snap()
        expected = canonical.pixels[bounds.top:bounds.bottom, bounds.left:bounds.right]
        flip_h, flip_v = QUADRANT_FLIPS[quadrant]
        if flip_h:
            expected = expected[:, ::-1]
        if flip_v:
            expected = expected[::-1, :]

        seed = normalize(canonical, rect, quadrant)
        assert seed.size == (bounds.width, bounds.height)
        np.testing.assert_array_equal(seed.pixels, expected)

    def test_seed_corner_touches_midpoint(self):
        """After reorientation every seed's bottom-right pixel sits next to the midpoint."""
        canonical = _coordinate_image(10, 8)
        rects = partition(10, 8, Midpoint(0.5, 0.5))
        tr_seed = normalize(canonical, rects[QuadrantIndex.TOP_RIGHT], QuadrantIndex.TOP_RIGHT)
        br_seed = normalize(canonical, rects[QuadrantIndex.BOTTOM_RIGHT], QuadrantIndex.BOTTOM_RIGHT)
        assert tr_seed.pixel(tr_seed.width - 1, tr_seed.height - 1)[:2] == (5, 3)
        assert br_seed.pixel(br_seed.width - 1, br_seed.height - 1)[:2] == (5, 4)

    def test_accepts_pixel_bounds(self):
        canonical = _coordinate_image(6, 6)
        seed = normalize(canonical, PixelBounds(1, 2, 4, 5), QuadrantIndex.TOP_LEFT)
        assert seed.pixel(0, 0)[:2] == (1, 2)
        assert seed.size == (3, 3)

    def test_empty_rect_gives_empty_seed(self):
        canonical = _coordinate_image(6, 6)
        rect = partition(6, 6, Midpoint(0.0, 0.5))[QuadrantIndex.TOP_LEFT]
        assert normalize(canonical, rect, QuadrantIndex.TOP_LEFT).is_empty


# ---------------------------------------------------------------------------
# Tests: mirror compositor
# ---------------------------------------------------------------------------


class TestCompose:
    def test_marker_reaches_every_corner(self):
        out = compose(_marked_seed(3, 2), 10, 6)
        assert out.pixel(0, 0) == MARKER
        assert out.pixel(9, 0) == MARKER
        assert out.pixel(0, 5) == MARKER
        assert out.pixel(9, 5) == MARKER
        assert out.pixel(1, 0) != MARKER

    def test_gap_between_small_tiles_is_background(self):
        out = compose(_marked_seed(3, 2), 10, 6)
        assert _is_background(out.pixels[2:4, :])
        assert _is_background(out.pixels[:, 3:7])

    def test_output_matches_requested_size(self):
        out = compose(_marked_seed(3, 2), 11, 7)
        assert out.size == (11, 7)

    def test_overlap_follows_draw_order(self):
        out = compose(_row([10, 20, 30, 40]), 6, 1)
        # identity, then the horizontal mirror drawn over its right end
        assert list(out.pixels[0, :, 0]) == [10, 20, 40, 30, 20, 10]

    def test_centered_seed_is_symmetric(self):
        canonical = _coordinate_image(12, 8)
        seed = normalize(canonical, partition(12, 8, Midpoint())[0], QuadrantIndex.TOP_LEFT)
        out = compose(seed, 12, 8)
        np.testing.assert_array_equal(out.pixels, out.pixels[:, ::-1])
        np.testing.assert_array_equal(out.pixels, out.pixels[::-1, :])
        np.testing.assert_array_equal(out.pixels[:4, :6], canonical.pixels[:4, :6])

    def test_empty_seed_is_all_background(self):
        out = compose(RasterBuffer.empty(), 5, 4)
        assert out.size == (5, 4)
        assert _is_background(out.pixels)

    def test_zero_sized_canvas(self):
        assert compose(_marked_seed(2, 2), 0, 0).is_empty


# ---------------------------------------------------------------------------
# Tests: preview pipeline
# ---------------------------------------------------------------------------


class TestGenerateSymmetries:
    def test_four_patterns_at_canonical_size(self):
        image = _coordinate_image(37, 23)
        patterns = generate_symmetries(image, Midpoint(0.31, 0.77), rotation_deg=12.0, zoom=1.1)
        canonical = preprocess(image, 12.0, 1.1)
        assert len(patterns) == 4
        for pattern in patterns:
            assert pattern.size == canonical.size

    def test_preview_tier_caps_patterns(self):
        image = RasterBuffer(np.zeros((600, 2048, 4), dtype=np.uint8))
        patterns = generate_symmetries(image, Midpoint(0.2, 0.4))
        assert all(p.size == (1024, 300) for p in patterns)

    def test_idempotent(self):
        image = _coordinate_image(64, 40)
        first = generate_symmetries(image, Midpoint(0.42, 0.58), rotation_deg=-30.0, zoom=1.4)
        second = generate_symmetries(image, Midpoint(0.42, 0.58), rotation_deg=-30.0, zoom=1.4)
        assert [p.tobytes() for p in first] == [p.tobytes() for p in second]

    def test_degenerate_midpoint_left_half_background(self):
        image = _coordinate_image(20, 10)
        patterns = generate_symmetries(image, Midpoint(0.0, 0.5), tier=QualityTier.HIGH_RES)
        top_left = patterns[QuadrantIndex.TOP_LEFT]
        assert _is_background(top_left.pixels[:, :10])
        top_right = patterns[QuadrantIndex.TOP_RIGHT]
        assert not _is_background(top_right.pixels[:, :10])

    def test_pattern_matches_pipeline_entry(self):
        image = _coordinate_image(30, 20)
        patterns = generate_symmetries(image, Midpoint(0.6, 0.35), 5.0, 1.2, QualityTier.HIGH_RES)
        single = generate_pattern(
            image, Midpoint(0.6, 0.35), 5.0, 1.2, QualityTier.HIGH_RES, QuadrantIndex.BOTTOM_LEFT
        )
        assert single == patterns[QuadrantIndex.BOTTOM_LEFT]

    def test_nothing_to_render(self):
        assert generate_symmetries(None, Midpoint()) == []
        assert generate_symmetries(RasterBuffer.empty(), Midpoint()) == []
        assert generate_symmetries(_coordinate_image(4, 4), None) == []
        assert generate_pattern(None, Midpoint()).is_empty


class TestRenderPreview:
    def test_result_carries_params(self):
        params = RenderParams(midpoint=Midpoint(0.25, 0.5), rotation_deg=10.0)
        result = render_preview(_coordinate_image(16, 16), params)
        assert isinstance(result, PreviewResult)
        assert len(result) == 4
        assert result.params is params
        assert result[QuadrantIndex.BOTTOM_RIGHT] is result.patterns[3]

    def test_stale_results_detected(self):
        image = _coordinate_image(16, 16)
        old = render_preview(image, RenderParams(midpoint=Midpoint(0.2, 0.2)))
        latest = RenderParams(midpoint=Midpoint(0.8, 0.2))
        assert not old.is_current(latest)
        assert old.is_current(RenderParams(midpoint=Midpoint(0.2, 0.2)))
