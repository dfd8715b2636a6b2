"""scanline_resampler: resampling of 1D scanlines by convolution with a filter kernel.

.. include:: ../README.md
"""

from __future__ import annotations

__docformat__ = 'google'
__version__ = '0.1.0'
__version_info__ = tuple(int(num) for num in __version__.split('.'))

import abc
import dataclasses
import math
import typing
from typing import Any

import numpy as np
import numpy.typing as npt
import scipy.sparse

if typing.TYPE_CHECKING:
  _DType = np.dtype[Any]
  _NDArray = npt.NDArray[Any]
  _DTypeLike = npt.DTypeLike
  _ArrayLike = npt.ArrayLike
else:
  _DType = Any
  _NDArray = Any
  _DTypeLike = Any  # Else `pdoc` uses a long type expression for documentation.
  _ArrayLike = Any  # Same.


def _check_eq(a: Any, b: Any) -> None:
  """If the two values or arrays are not equal, raise an exception with a useful message."""
  are_equal = np.all(a == b) if isinstance(a, np.ndarray) else a == b
  if not are_equal:
    raise AssertionError(f'{a!r} == {b!r}')


def _check_sample_dtype(dtype: _DTypeLike) -> _DType:
  """Return `dtype` if it can hold real-valued sample intensities, else raise ValueError."""
  dtype = np.dtype(dtype)
  if not (np.issubdtype(dtype, np.integer) or np.issubdtype(dtype, np.floating)):
    raise ValueError(f'Type {dtype} is not a real numeric sample type.')
  return dtype


def _sinc(x: _ArrayLike) -> _NDArray:
  """Return the value `np.sinc(x)` but improved to:
  (1) ignore underflow that occurs at 0.0 for np.float32, and
  (2) output exact zero for integer input values.

  >>> _sinc(np.array([-3, -2, -1, 0], dtype=np.float32))
  array([0., 0., 0., 1.], dtype=float32)

  >>> _sinc(np.array([-3, -2, -1, 0]))
  array([0., 0., 0., 1.])

  >>> _sinc(0)
  1.0
  """
  x = np.asarray(x)
  x_is_scalar = x.ndim == 0
  with np.errstate(under='ignore'):
    result = np.sinc(np.atleast_1d(x))
    result[np.atleast_1d(x == np.floor(x))] = 0.0
    result[np.atleast_1d(x == 0)] = 1.0
    return result.item() if x_is_scalar else result


@dataclasses.dataclass(frozen=True)
class Filter:
  """Abstract base class for filter kernel functions.

  Each kernel is a zero-phase weighting function evaluated at the signed distance between an
  output sample position (mapped into the input domain) and an input sample index.  Its weights
  vanish outside the support interval [-radius, radius].
  """

  name: str
  """Filter kernel name."""

  radius: float
  """Support half-width: max absolute value of x for which self(x) is nonzero."""

  interpolating: bool = True
  """True if self(0) == 1.0 and self(i) == 0.0 for all nonzero integers i."""

  continuous: bool = True
  """True if the kernel function has C^0 continuity."""

  partition_of_unity: bool = True
  """True if the convolution of the kernel with a Dirac comb reproduces the
  unity function."""

  @abc.abstractmethod
  def __call__(self, x: _ArrayLike) -> _NDArray:
    """Return evaluation of filter kernel at locations x."""


class BoxFilter(Filter):
  """See https://en.wikipedia.org/wiki/Box_function.

  The kernel function has value 1.0 over the half-open interval (-.5, .5], so that a sample
  position lying exactly halfway between two input samples picks the left one.  When
  minifying, its broadened support is rounded up to a whole number of input samples.
  """

  def __init__(self) -> None:
    super().__init__(name='box', radius=0.5, continuous=False)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.asarray(x)
    return np.where((-0.5 < x) & (x <= 0.5), 1.0, 0.0)


class TriangleFilter(Filter):
  """See https://en.wikipedia.org/wiki/Triangle_function.

  Also known as the hat or tent function.  It is used for piecewise-linear interpolation.
  """

  def __init__(self) -> None:
    super().__init__(name='triangle', radius=1.0)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    return (1.0 - np.abs(x)).clip(0.0, 1.0)


class CubicConvolutionFilter(Filter):
  """Piecewise-cubic convolution kernel with a single free parameter.

  Args:
    a: Value of the kernel slope at x = 1.  The default `a = -1.0` gives a sharper response
      than the Catmull-Rom value `a = -0.5`.

  [R. G. Keys.  Cubic convolution interpolation for digital image processing.
  IEEE Trans. on Acoustics, Speech, and Signal Processing, 29(6), 1981.]
  https://ieeexplore.ieee.org/document/1163711/.
  """

  def __init__(self, *, a: float = -1.0) -> None:
    name = 'cubic' if a == -1.0 else f'cubic_a{a}'
    super().__init__(name=name, radius=2.0)
    self.a = a

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.abs(x)
    a = self.a
    v01 = ((a + 2) * x - (a + 3)) * x * x + 1
    v12 = a * (((x - 5) * x + 8) * x - 4)
    return np.where(x < 1.0, v01, np.where(x < 2.0, v12, 0.0))


class LanczosFilter(Filter):
  """High-quality filter: sinc function modulated by a sinc window.

  Args:
    radius: Specifies the support window [-radius, radius] over which the filter is nonzero.

  See https://en.wikipedia.org/wiki/Lanczos_kernel.
  """

  def __init__(self, *, radius: int) -> None:
    super().__init__(name=f'lanczos{radius}', radius=radius, partition_of_unity=False)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.abs(x)
    # Zero-phase window w_0(x) = sinc(x / radius).
    window = _sinc(x / self.radius)
    return np.where(x < self.radius, _sinc(x) * window, 0.0)


class HannFilter(Filter):
  """Sinc function modulated by a Hann window.

  Args:
    radius: Specifies the support window [-radius, radius] over which the filter is nonzero.
      The window width is the same value, so the kernel tapers to zero at the support boundary.

  See https://en.wikipedia.org/wiki/Window_function#Hann_and_Hamming_windows.
  """

  def __init__(self, *, radius: int) -> None:
    super().__init__(name=f'hann{radius}', radius=radius, partition_of_unity=False)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.abs(x)
    window = 0.5 + 0.5 * np.cos(np.pi / self.radius * x)
    return np.where(x < self.radius, _sinc(x) * window, 0.0)


_DEFAULT_FILTER = 'lanczos3'

_DICT_FILTERS = {
    'box': BoxFilter(),
    'triangle': TriangleFilter(),
    'cubic': CubicConvolutionFilter(),
    'lanczos3': LanczosFilter(radius=3),
    'hann4': HannFilter(radius=4),
}

FILTERS = list(_DICT_FILTERS)
r"""Shortcut names for the predefined filter kernels.  The position of a name in this list is
also its integer filter code.

| code | name         | `Filter`                      | a.k.a. / comments |
|------|--------------|-------------------------------|-------------------|
| 0    | `'box'`      | `BoxFilter()`                 | *nearest*; integral support when minifying |
| 1    | `'triangle'` | `TriangleFilter()`            | *linear* |
| 2    | `'cubic'`    | `CubicConvolutionFilter()`    | cubic convolution with a = -1 |
| 3    | `'lanczos3'` | `LanczosFilter`(radius=3)     | support window [-3, 3] |
| 4    | `'hann4'`    | `HannFilter`(radius=4)        | 8-point Hann-windowed sinc |
"""


def _get_filter(filter: str | int | Filter) -> Filter:
  """Return a `Filter`, specified as a name in `FILTERS`, an integer code, or an instance."""
  if isinstance(filter, Filter):
    return filter
  if isinstance(filter, (int, np.integer)) and not isinstance(filter, bool):
    if not 0 <= filter < len(FILTERS):
      raise ValueError(f'Filter code {filter} is outside the range [0, {len(FILTERS)}).')
    return _DICT_FILTERS[FILTERS[filter]]
  if isinstance(filter, str) and filter in _DICT_FILTERS:
    return _DICT_FILTERS[filter]
  raise ValueError(f'Filter {filter!r} is not one of {FILTERS}.')


_DEFAULT_ROUNDING = 'nearest'

ROUNDINGS = ['nearest', 'truncate']
"""Policies for storing accumulated float values into an integer sample type:

- `'nearest'`: round half up to the nearest integer, then clamp to the range of the type.
- `'truncate'`: drop the fractional part (toward zero), then clamp to the range of the type.

Float sample types store the accumulated value unchanged under either policy.
"""


def _from_float(array: _NDArray, dtype: _DTypeLike, rounding: str) -> _NDArray:
  """Convert accumulated float values to `dtype` using the `rounding` policy."""
  dtype = np.dtype(dtype)
  if not np.issubdtype(dtype, np.integer):
    return array.astype(dtype)
  if rounding == 'nearest':
    array = np.floor(array + 0.5)
  elif rounding == 'truncate':
    array = np.trunc(array)
  else:
    raise ValueError(f'Rounding {rounding!r} is not one of {ROUNDINGS}.')
  iinfo = np.iinfo(dtype)
  return array.clip(iinfo.min, iinfo.max).astype(dtype)


@dataclasses.dataclass(frozen=True)
class ResamplingContext:
  """Derived state shared by all output samples of one resampling call."""

  src_size: int
  """Number of samples in the input scanline."""

  dst_size: int
  """Number of samples in the output scanline."""

  filter: Filter
  """The kernel evaluated in the convolution."""

  scale: float
  """Ratio `dst_size / src_size`; it is less than 1 for minification."""

  fwidth: float
  """Effective support half-width in input samples, broadened when minifying."""

  fscale: float
  """Amplitude (and abscissa) scale applied to the kernel; it is 1 unless minifying."""

  @property
  def is_minification(self) -> bool:
    return 0.0 < self.scale < 1.0


def get_resampling_context(src_size: int, dst_size: int,
                           filter: str | int | Filter) -> ResamplingContext:
  """Return the scale, support, and amplitude correction for resampling with `filter`.

  When minifying, the kernel h(x) is replaced by h(x * scale) * scale, which broadens its support
  to `radius / scale` input samples.  For the box filter, that support is further rounded up to
  an integer number of samples (with a matching amplitude) to avoid periodic intensity modulation.

  Args:
    src_size: Number of input samples; it must be positive.
    dst_size: Number of output samples; it must be non-negative.
    filter: A name in `FILTERS`, an integer code (index into `FILTERS`), or a `Filter` instance.

  Returns:
    The `ResamplingContext` for the call.

  >>> context = get_resampling_context(6, 2, 'box')
  >>> context.fwidth, context.fscale
  (2, 0.25)
  """
  if src_size <= 0:
    raise ValueError(f'Source size {src_size} is not positive.')
  if dst_size < 0:
    raise ValueError(f'Destination size {dst_size} is negative.')
  filter = _get_filter(filter)
  scale = dst_size / src_size
  fwidth: float = filter.radius
  fscale = 1.0
  if 0.0 < scale < 1.0:  # An empty output keeps the nominal support.
    fwidth = fwidth / scale
    fscale = scale
    if isinstance(filter, BoxFilter):
      fwidth = math.ceil(fwidth)
      fscale = 1.0 / (2 * fwidth)
  return ResamplingContext(src_size=src_size, dst_size=dst_size, filter=filter,
                           scale=scale, fwidth=fwidth, fscale=fscale)


def _create_resample_matrix(context: ResamplingContext) -> scipy.sparse.csr_matrix:
  """Compute the weights for 1D resampling from `context.src_size` to `context.dst_size`.

  Each row of the returned sparse matrix (of shape `(dst_size, src_size)`) expresses one output
  sample as a weighted combination of input samples.  The kernel is centered at the output
  position mapped back into the input domain, `u = x / scale`.  Its window `[left, right]` has
  `right = floor(u + fwidth)` and `left = ceil(u - fwidth)`, except that `left` uses floor
  when `u - fwidth` is negative.  Indices outside the input are clamped to the nearest edge
  sample, and the resulting duplicate entries are summed.

  Args:
    context: Derived state from `get_resampling_context()`.

  Returns:
    Matrix whose rows express output sample values as combinations of the input sample values.
  """
  src_size, dst_size = context.src_size, context.dst_size
  fwidth, fscale = context.fwidth, context.fscale
  dst_index = np.arange(dst_size, dtype=np.float64)
  src_position = dst_index / context.scale  # Inverse mapping.
  src_low = src_position - fwidth
  src_left = np.where(src_low < 0, np.floor(src_low), np.ceil(src_low)).astype(np.int64)
  src_right = np.floor(src_position + fwidth).astype(np.int64)

  # Upper bound on right - left + 1 over all output samples.
  num_samples = math.floor(2 * fwidth) + 2
  src_index = src_left[:, None] + np.arange(num_samples)  # (dst_size, num_samples)
  weight = context.filter((src_position[:, None] - src_index) * fscale) * fscale
  weight = np.where(src_index <= src_right[:, None], weight, 0.0)

  row_ind = np.broadcast_to(np.arange(dst_size)[:, None], src_index.shape).reshape(-1)
  col_ind = src_index.clip(0, src_size - 1).reshape(-1)
  values = weight.reshape(-1)
  nonzero = values != 0.0
  return scipy.sparse.csr_matrix(
      (values[nonzero], (row_ind[nonzero], col_ind[nonzero])), shape=(dst_size, src_size))


def resample_scanline(
    src: _ArrayLike,
    dst: _NDArray,
    src_size: int,
    dst_size: int,
    filter: str | int | Filter,
    stride: int = 1,
    *,
    rounding: str = _DEFAULT_ROUNDING,
) -> None:
  """Resample `src_size` strided samples of `src` into `dst_size` strided samples of `dst`.

  The samples are read from `src[i * stride]` for `0 <= i < src_size` and written to
  `dst[x * stride]` for `0 <= x < dst_size`; no other element of `dst` is modified.  A stride of 1
  processes a contiguous row; a stride equal to the row width processes a column of a flattened
  row-major image, e.g. with `src=src_flat[column:]` and `dst=dst_flat[column:]`.

  Args:
    src: 1D buffer of input samples, with an integer or floating type.
    dst: 1D numpy array that receives the output samples in place.
    src_size: Number of input samples; it must be positive.
    dst_size: Number of output samples; it must be non-negative.
    filter: The convolution kernel, specified as a name in `FILTERS`, an integer code (index into
      `FILTERS`), or a `Filter` instance.
    stride: Step between logically adjacent samples in both `src` and `dst`.
    rounding: Policy in `ROUNDINGS` used when `dst` has an integer type.
  """
  if stride < 1:
    raise ValueError(f'Stride {stride} is not positive.')
  if rounding not in ROUNDINGS:
    raise ValueError(f'Rounding {rounding!r} is not one of {ROUNDINGS}.')
  context = get_resampling_context(src_size, dst_size, filter)
  src = np.asarray(src)
  if src.ndim != 1:
    raise ValueError(f'Source buffer with shape {src.shape} is not 1D.')
  if not isinstance(dst, np.ndarray) or dst.ndim != 1:
    raise ValueError('Destination buffer must be a 1D numpy array.')
  _check_sample_dtype(src.dtype)
  _check_sample_dtype(dst.dtype)
  src_extent = (src_size - 1) * stride + 1
  if len(src) < src_extent:
    raise ValueError(f'Source buffer of length {len(src)} cannot hold {src_size} samples'
                     f' with stride {stride}.')
  if dst_size == 0:
    return
  dst_extent = (dst_size - 1) * stride + 1
  if len(dst) < dst_extent:
    raise ValueError(f'Destination buffer of length {len(dst)} cannot hold {dst_size} samples'
                     f' with stride {stride}.')

  samples = src[:src_extent:stride].astype(np.float64)
  resample_matrix = _create_resample_matrix(context)
  result = resample_matrix @ samples
  _check_eq(result.shape, (dst_size,))
  dst[:dst_extent:stride] = _from_float(result, dst.dtype, rounding)


def resize_scanline(
    scanline: _ArrayLike,
    size: int,
    *,
    filter: str | int | Filter = _DEFAULT_FILTER,
    rounding: str = _DEFAULT_ROUNDING,
    dtype: _DTypeLike = None,
) -> _NDArray:
  """Return a new scanline with `size` samples, resampled from `scanline`.

  Args:
    scanline: 1D array (or list) of sample values, with an integer or floating type.
    size: Number of samples in the output.
    filter: The convolution kernel, specified as a name in `FILTERS`, an integer code (index into
      `FILTERS`), or a `Filter` instance.
    rounding: Policy in `ROUNDINGS` used when the output has an integer type.
    dtype: Desired data type of the output array.  If `None`, it is taken to be `scanline.dtype`.

  Returns:
    A 1D numpy array of length `size` and type `dtype`.

  >>> resize_scanline(np.array([10, 20, 30, 40], np.uint8), 8, filter='box')
  array([10, 10, 20, 20, 30, 30, 40, 40], dtype=uint8)

  >>> resize_scanline([0.0, 100.0], 4, filter='triangle')
  array([  0.,  50., 100., 100.])
  """
  scanline = np.asarray(scanline)
  if scanline.ndim != 1:
    raise ValueError(f'Scanline with shape {scanline.shape} is not 1D.')
  if size < 0:
    raise ValueError(f'Destination size {size} is negative.')
  dtype = _check_sample_dtype(scanline.dtype if dtype is None else dtype)
  result = np.empty(size, dtype)
  resample_scanline(scanline, result, len(scanline), size, filter, rounding=rounding)
  return result
