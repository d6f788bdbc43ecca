"""imstretch: separable resampling of raster images using reconstruction filters.

.. include:: ../README.md
"""

from __future__ import annotations

__docformat__ = 'google'
__version__ = '0.1.0'
__version_info__ = tuple(int(num) for num in __version__.split('.'))

from collections.abc import Callable, Iterable
import abc
import dataclasses
import enum
import math
import typing
from typing import Any

import numpy as np
import numpy.typing as npt
import scipy.sparse

try:
  import numba
except ModuleNotFoundError:
  pass
except ImportError as e:
  if 0:
    print(f'(Could not import numba: {e})', flush=True)  # e.g. "Numba needs NumPy 1.22 or less".

if typing.TYPE_CHECKING:
  _DType = np.dtype[Any]  # (Requires Python 3.9 or TYPE_CHECKING.)
  _NDArray = npt.NDArray[Any]
  _DTypeLike = npt.DTypeLike
  _ArrayLike = npt.ArrayLike
else:
  _DType = Any
  _NDArray = Any
  _DTypeLike = Any  # Else `pdoc` uses a long type expression for documentation.
  _ArrayLike = Any  # Same.


class ModeMismatchError(ValueError):
  """The pixel modes of two images differ, or a mode does not support resampling."""


class InvalidArgumentError(ValueError):
  """An argument such as an image size or a filter kind is invalid."""


class AllocationError(MemoryError):
  """An image buffer could not be allocated."""


def _check_eq(a: Any, b: Any) -> None:
  """If the two values or arrays are not equal, raise an exception with a useful message."""
  are_equal = np.all(a == b) if isinstance(a, np.ndarray) else a == b
  if not are_equal:
    raise AssertionError(f'{a!r} == {b!r}')


def _sinc(x: _ArrayLike) -> _NDArray:
  """Return the value `np.sinc(x)` but improved to:
  (1) ignore underflow that occurs at 0.0 for np.float32, and
  (2) output exact zero for integer input values.

  >>> _sinc(np.array([-3, -2, -1, 0], dtype=np.float32))
  array([0., 0., 0., 1.], dtype=float32)

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

  A kernel is evaluated in its own (unscaled) coordinate space and is zero outside the
  support interval [-radius, radius].  When an axis is minified, `create_resample_plan`
  widens the footprint of the kernel by the scaling factor.
  """

  name: str
  """Filter kernel name."""

  radius: float
  """Max absolute value of x for which self(x) is nonzero."""

  @abc.abstractmethod
  def __call__(self, x: _ArrayLike) -> _NDArray:
    """Return evaluation of filter kernel at locations x."""


class NearestFilter(Filter):
  """See https://en.wikipedia.org/wiki/Box_function.

  The kernel function has value 1.0 over the half-open interval [-.5, .5), so that exactly one
  source sample is selected at each magnified output sample.
  """

  def __init__(self) -> None:
    super().__init__(name='nearest', radius=0.5)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.asarray(x)
    return np.where((-0.5 <= x) & (x < 0.5), 1.0, 0.0)


class BilinearFilter(Filter):
  """See https://en.wikipedia.org/wiki/Triangle_function.

  Also known as the hat or tent function.  Applied along both axes, it gives bilinear
  interpolation.
  """

  def __init__(self) -> None:
    super().__init__(name='bilinear', radius=1.0)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    return (1.0 - np.abs(x)).clip(0.0, 1.0)


class BicubicFilter(Filter):
  """Cubic convolution kernel parameterized by the slope `a` at x = 1.

  Args:
    a: Scalar parameter.  The default value -0.5 gives the Catmull-Rom spline (also known as the
      Keys filter), which has cubic precision.

  See http://en.wikipedia.org/wiki/Bicubic_interpolation#Bicubic_convolution_algorithm.

  [R. G. Keys.  Cubic convolution interpolation for digital image processing.
  IEEE Trans. on Acoustics, Speech, and Signal Processing, 29(6), 1981.]
  """

  def __init__(self, *, a: float = -0.5) -> None:
    super().__init__(name='bicubic' if a == -0.5 else f'bicubic_a{a}', radius=2.0)
    self.a = a

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.abs(x)
    a = self.a
    v01 = ((a + 2.0) * x - (a + 3.0)) * x * x + 1.0
    v12 = (((x - 5.0) * x + 8.0) * x - 4.0) * a
    return np.where(x < 1.0, v01, np.where(x < 2.0, v12, 0.0))


class AntialiasFilter(Filter):
  """High-quality filter: sinc function modulated by a sinc window (Lanczos with radius 3).

  Like `NearestFilter`, the support is the half-open interval [-3, 3).

  See https://en.wikipedia.org/wiki/Lanczos_kernel.
  """

  def __init__(self) -> None:
    super().__init__(name='antialias', radius=3.0)

  def __call__(self, x: _ArrayLike) -> _NDArray:
    x = np.asarray(x, np.float64)
    radius = self.radius
    window = _sinc(x / radius)
    return np.where((-radius <= x) & (x < radius), _sinc(x) * window, 0.0)


class Resampling(enum.IntEnum):
  """Integer codes for the filters, as used by the transform functions of the Python Imaging
  Library."""

  NEAREST = 0
  ANTIALIAS = 1
  BILINEAR = 2
  BICUBIC = 3
  LANCZOS = 1  # Alias of ANTIALIAS.


_DEFAULT_FILTER = 'antialias'

_DICT_FILTERS = {
    'nearest': NearestFilter(),
    'bilinear': BilinearFilter(),
    'bicubic': BicubicFilter(),
    'antialias': AntialiasFilter(),
}

_FILTER_ALIASES = {'lanczos': 'antialias'}

FILTERS = list(_DICT_FILTERS)
r"""Names of the predefined filter kernels.  They expand to:

| name          | `Filter`             | support       | a.k.a. |
|---------------|----------------------|---------------|--------|
| `'nearest'`   | `NearestFilter()`    | [-0.5, 0.5)   | *box*, `Resampling.NEAREST` |
| `'bilinear'`  | `BilinearFilter()`   | [-1, 1]       | *triangle*, `Resampling.BILINEAR` |
| `'bicubic'`   | `BicubicFilter()`    | [-2, 2]       | *catmullrom* (a=-0.5), `Resampling.BICUBIC` |
| `'antialias'` | `AntialiasFilter()`  | [-3, 3)       | *lanczos*, `Resampling.ANTIALIAS` |
"""


def _get_filter(filter: str | int | Filter) -> Filter:
  """Return a `Filter`, which can be specified as a name in `FILTERS`, a `Resampling` code, or
  a `Filter` instance."""
  if isinstance(filter, Filter):
    return filter
  if isinstance(filter, (int, np.integer)) and not isinstance(filter, bool):
    try:
      filter = Resampling(int(filter)).name.lower()
    except ValueError:
      raise InvalidArgumentError(f'Unsupported resampling filter code {filter}.') from None
  if not isinstance(filter, str):
    raise InvalidArgumentError(f'Unsupported resampling filter {filter!r}.')
  name = _FILTER_ALIASES.get(filter, filter)
  if name not in _DICT_FILTERS:
    raise InvalidArgumentError(f'Unsupported resampling filter {filter!r}; not in {FILTERS}.')
  return _DICT_FILTERS[name]


@dataclasses.dataclass(frozen=True)
class Mode:
  """Pixel mode of an `Image`."""

  name: str
  """Mode name, as in the Python Imaging Library (e.g., `'L'`, `'RGBA'`, `'F'`)."""

  bands: int
  """Number of logical channels per pixel."""

  dtype: str
  """Numpy type of each sample in the pixel buffer."""

  packed: bool = False
  """True if each pixel occupies 4 uint8 slots, of which the bands use `channel_offsets`."""

  resamplable: bool = True
  """False for palette-indexed and bilevel modes, whose samples cannot be averaged."""

  @property
  def channel_offsets(self) -> tuple[int, ...]:
    """Physical slot of each logical band within a pixel."""
    if self.packed and self.bands == 2:
      return (0, 3)  # Luminance and alpha occupy the first and last slots.
    return tuple(range(self.bands))


_DICT_MODES = {
    '1': Mode('1', 1, 'uint8', resamplable=False),
    'P': Mode('P', 1, 'uint8', resamplable=False),
    'L': Mode('L', 1, 'uint8'),
    'LA': Mode('LA', 2, 'uint8', packed=True),
    'RGB': Mode('RGB', 3, 'uint8', packed=True),
    'RGBA': Mode('RGBA', 4, 'uint8', packed=True),
    'RGBX': Mode('RGBX', 4, 'uint8', packed=True),
    'CMYK': Mode('CMYK', 4, 'uint8', packed=True),
    'YCbCr': Mode('YCbCr', 3, 'uint8', packed=True),
    'I': Mode('I', 1, 'int32'),
    'F': Mode('F', 1, 'float32'),
    'I;16': Mode('I;16', 1, 'uint16'),
}

MODES = list(_DICT_MODES)
"""Names of the supported pixel modes.  Modes `'1'` and `'P'` cannot be resized, and mode
`'I;16'` has no resampling representation."""

# Mode used by `fromarray` for each (dtype, number of channels); 0 channels denotes a 2D array.
_DICT_MODE_FROM_ARRAY = {
    ('uint8', 0): 'L',
    ('uint8', 1): 'L',
    ('uint8', 2): 'LA',
    ('uint8', 3): 'RGB',
    ('uint8', 4): 'RGBA',
    ('uint16', 0): 'I;16',
    ('int32', 0): 'I',
    ('int64', 0): 'I',
    ('float32', 0): 'F',
    ('float64', 0): 'F',
}


def _get_mode(mode: str | Mode) -> Mode:
  """Return a `Mode`, which can be specified as a name in `MODES`."""
  if isinstance(mode, Mode):
    return mode
  if mode not in _DICT_MODES:
    raise InvalidArgumentError(f'Unknown image mode {mode!r}; not in {MODES}.')
  return _DICT_MODES[mode]


class Image:
  """A 2D grid of pixels with a pixel `Mode`.

  The pixel buffer `pixels` has shape `(height, width)`, or `(height, width, 4)` for a packed
  mode, in which case the logical bands are stored at `mode.channel_offsets`.  Sizes are given
  as `(width, height)`.
  """

  def __init__(self, mode: str | Mode, pixels: _NDArray) -> None:
    self.mode = _get_mode(mode)
    pixels = np.asarray(pixels)
    expected_ndim = 3 if self.mode.packed else 2
    if pixels.ndim != expected_ndim or (self.mode.packed and pixels.shape[2] != 4):
      raise InvalidArgumentError(
          f'Pixel buffer of shape {pixels.shape} is incompatible with mode {self.mode.name}.')
    if pixels.dtype != np.dtype(self.mode.dtype):
      raise InvalidArgumentError(
          f'Pixel buffer of type {pixels.dtype} is incompatible with mode {self.mode.name}.')
    self.size: tuple[int, int] = pixels.shape[1], pixels.shape[0]
    self._pixels: _NDArray | None = pixels

  @property
  def width(self) -> int:
    return self.size[0]

  @property
  def height(self) -> int:
    return self.size[1]

  @property
  def pixels(self) -> _NDArray:
    """The pixel buffer."""
    if self._pixels is None:
      raise ValueError(f'The {self.mode.name} image of size {self.size} has been released.')
    return self._pixels

  @property
  def released(self) -> bool:
    return self._pixels is None

  def release(self) -> None:
    """Drop the pixel buffer."""
    self._pixels = None

  def numpy(self) -> _NDArray:
    """Return a copy of the samples, with shape `(height, width)` for a single-band mode or
    `(height, width, bands)` otherwise."""
    if not self.mode.packed:
      return self.pixels.copy()
    return self.pixels[..., list(self.mode.channel_offsets)]

  def __repr__(self) -> str:
    return f'Image(mode={self.mode.name!r}, size={self.size})'


def new_image(mode: str | Mode, width: int, height: int) -> Image:
  """Return a zero-initialized image."""
  mode = _get_mode(mode)
  if width < 0 or height < 0:
    raise InvalidArgumentError(f'Image size ({width}, {height}) is negative.')
  shape = (height, width, 4) if mode.packed else (height, width)
  message = f'Cannot allocate {mode.name} image of size ({width}, {height}).'
  if math.prod(shape) * np.dtype(mode.dtype).itemsize > np.iinfo(np.intp).max:
    raise AllocationError(message)
  try:
    pixels = np.zeros(shape, mode.dtype)
  except MemoryError as e:
    raise AllocationError(message) from e
  return Image(mode, pixels)


def fromarray(array: _ArrayLike, mode: str | Mode | None = None) -> Image:
  """Return a new image containing the samples of `array`.

  Args:
    array: Samples with shape `(height, width)` or `(height, width, bands)`.
    mode: Pixel mode of the new image.  If `None`, it is inferred from the dtype and number of
      channels of `array` (e.g., `uint8` with 3 channels gives `'RGB'`, `float64` gives `'F'`).

  Returns:
    An image of size `(width, height)`.
  """
  array = np.asarray(array)
  if mode is None:
    num_channels = array.shape[2] if array.ndim == 3 else 0
    key = array.dtype.name, num_channels
    if array.ndim not in (2, 3) or key not in _DICT_MODE_FROM_ARRAY:
      raise InvalidArgumentError(
          f'Cannot infer a mode for an array of type {array.dtype} and shape {array.shape}.')
    mode = _DICT_MODE_FROM_ARRAY[key]
  mode = _get_mode(mode)
  if array.ndim == 3 and mode.bands == 1 and array.shape[2] == 1:
    array = array[..., 0]
  expected_ndim = 2 if mode.bands == 1 else 3
  if array.ndim != expected_ndim or (expected_ndim == 3 and array.shape[2] != mode.bands):
    raise InvalidArgumentError(
        f'Array of shape {array.shape} is incompatible with mode {mode.name}.')
  height, width = array.shape[:2]
  image = new_image(mode, width, height)
  if mode.packed:
    image.pixels[..., list(mode.channel_offsets)] = array
  else:
    image.pixels[...] = array
  return image


@dataclasses.dataclass(frozen=True)
class Storage:
  """Abstract base class for the pixel representations that support resampling.

  A representation gathers the logical bands of an image as float64 sample values and encodes
  the normalized weighted sums back into its own sample type.
  """

  name: str
  """Representation name."""

  packed: bool = False
  """True if the bands are stored in 4-slot pixels (see `Mode.channel_offsets`)."""

  def gather(self, image: Image) -> _NDArray:
    """Return the samples of `image` as a float64 array of shape `(width, height * bands)`."""
    pixels = image.pixels
    if self.packed:
      values = pixels[..., list(image.mode.channel_offsets)]
    else:
      values = pixels[..., None]
    values = np.swapaxes(values, 0, 1).astype(np.float64)
    return values.reshape(image.width, image.height * image.mode.bands)

  def scatter(self, image: Image, values: _NDArray) -> None:
    """Encode `values` (with the layout returned by `gather`) into the pixels of `image`."""
    _check_eq(values.shape, (image.width, image.height * image.mode.bands))
    samples = self.encode(values).reshape(image.width, image.height, image.mode.bands)
    samples = np.swapaxes(samples, 0, 1)
    if self.packed:
      image.pixels[..., list(image.mode.channel_offsets)] = samples
    else:
      image.pixels[...] = samples[..., 0]

  @abc.abstractmethod
  def encode(self, values: _NDArray) -> _NDArray:
    """Return the float64 `values` converted to the sample type of this representation."""


class Gray8Storage(Storage):
  """8-bit samples, one band per pixel."""

  def __init__(self) -> None:
    super().__init__(name='uint8')

  def encode(self, values: _NDArray) -> _NDArray:
    # Rounding bias, then clamping to [0, 255] and truncation.
    return (values + 0.5).clip(0.0, 255.0).astype(np.uint8)


class Multi8Storage(Gray8Storage):
  """8-bit samples, with 2 to 4 bands packed into 4-slot pixels."""

  def __init__(self) -> None:
    Storage.__init__(self, name='uint8x4', packed=True)


class Int32Storage(Storage):
  """32-bit signed integer samples.

  Sums are truncated toward zero without clamping; values beyond the 32-bit range wrap around.
  Sums within a relative 1e-9 of an integer are first snapped to it, so constants survive the
  normalization round-off.
  """

  def __init__(self) -> None:
    super().__init__(name='int32')

  def encode(self, values: _NDArray) -> _NDArray:
    rounded = np.round(values)
    near_integer = np.abs(values - rounded) <= 1e-9 * np.maximum(1.0, np.abs(values))
    values = np.where(near_integer, rounded, np.trunc(values))
    return values.astype(np.int64).astype(np.int32)


class Float32Storage(Storage):
  """32-bit float samples, stored without clamping."""

  def __init__(self) -> None:
    super().__init__(name='float32')

  def encode(self, values: _NDArray) -> _NDArray:
    return values.astype(np.float32)


_DICT_STORAGES: dict[tuple[str, bool], Storage] = {
    ('uint8', False): Gray8Storage(),
    ('uint8', True): Multi8Storage(),
    ('int32', False): Int32Storage(),
    ('float32', False): Float32Storage(),
}


def _get_storage(mode: Mode) -> Storage:
  """Return the resampling representation of the pixels of `mode`."""
  storage = _DICT_STORAGES.get((mode.dtype, mode.packed))
  if storage is None:
    raise ModeMismatchError(f'Mode {mode.name} is not supported for resampling.')
  return storage


@dataclasses.dataclass(frozen=True, eq=False)
class ResamplePlan:
  """Convolution windows for resampling one axis from `src_size` to `dst_size` samples.

  Output sample `i` equals `norm[i] * sum(weight[i, k] * src[xmin[i] + k])` over the taps
  `0 <= k < xmax[i] - xmin[i]`.  Entries of `weight` beyond the taps of a window are zero.
  """

  src_size: int
  dst_size: int
  xmin: _NDArray
  """First source index of each window, shape `(dst_size,)`."""
  xmax: _NDArray
  """End (exclusive) source index of each window, shape `(dst_size,)`."""
  weight: _NDArray
  """Unnormalized tap weights, shape `(dst_size, max_taps)`."""
  norm: _NDArray
  """Reciprocal of the sum of tap weights in each window, or 1.0 if that sum is zero."""

  @property
  def num_taps(self) -> _NDArray:
    return self.xmax - self.xmin

  @property
  def max_taps(self) -> int:
    return self.weight.shape[1]

  def matrix(self) -> scipy.sparse.csr_matrix:
    """Return the unnormalized tap weights as a sparse matrix of shape `(dst_size, src_size)`."""
    tap = np.arange(self.max_taps)
    is_tap = tap < self.num_taps[:, None]
    row_ind = np.broadcast_to(np.arange(self.dst_size)[:, None], is_tap.shape)[is_tap]
    col_ind = (self.xmin[:, None] + tap)[is_tap]
    data = self.weight[is_tap]
    return scipy.sparse.csr_matrix((data, (row_ind, col_ind)), shape=(self.dst_size, self.src_size))


def create_resample_plan(src_size: int, dst_size: int,
                         filter: str | int | Filter = _DEFAULT_FILTER,
                         dtype: _DTypeLike = np.float64) -> ResamplePlan:
  """Compute the convolution windows for resampling an axis of `src_size` samples to `dst_size`.

  Sample `i` lies at the center `(i + 0.5)` of its pixel in both domains, so output sample `i`
  maps to the source position `center = (i + 0.5) * scale` where `scale = src_size / dst_size`.
  When minifying (`scale > 1`), the kernel footprint is widened by `filterscale = scale`, and the
  kernel values are divided by `filterscale` to preserve their integral.

  Windows are clipped to the source domain `[0, src_size)`; the normalization of each window
  compensates for the excluded samples.

  Args:
    src_size: The number of samples within the source axis.
    dst_size: The number of samples within the destination axis.
    filter: The reconstruction kernel, specified as a name in `FILTERS`, a `Resampling` code, or a
      `Filter` instance.
    dtype: Precision of the computed weights.

  Returns:
    The plan for all `dst_size` output samples.
  """
  if src_size < 1:
    raise InvalidArgumentError(f'Source size {src_size} is too small for resize.')
  if dst_size < 1:
    raise InvalidArgumentError(f'Destination size {dst_size} is too small for resize.')
  filter = _get_filter(filter)
  dtype = np.dtype(dtype)
  assert np.issubdtype(dtype, np.floating)

  scale = src_size / dst_size
  filterscale = max(scale, 1.0)
  support = filter.radius * filterscale
  # Upper bound on the number of taps in any window.
  max_taps = math.ceil(support) * 2 + 1

  center = (np.arange(dst_size, dtype=np.float64) + 0.5) * scale
  xmin = np.maximum(np.floor(center - support), 0.0).astype(np.int64)
  xmax = np.minimum(np.ceil(center + support), src_size).astype(np.int64)
  assert np.all(xmax - xmin <= max_taps), (xmax - xmin, max_taps)

  src_index = xmin[:, None] + np.arange(max_taps)  # (dst_size, max_taps)
  x = (src_index - center[:, None] + 0.5) / filterscale
  weight = np.asarray(filter(x) / filterscale, dtype)
  weight[src_index >= xmax[:, None]] = 0.0

  total = weight.sum(axis=-1)
  # A window whose taps sum to exactly zero is left unnormalized.
  norm = np.ones_like(total)
  np.divide(1.0, total, out=norm, where=total != 0.0)
  return ResamplePlan(src_size=src_size, dst_size=dst_size, xmin=xmin, xmax=xmax,
                      weight=weight, norm=norm)


class _ConvolveUsingNumba:
  """Application of a `ResamplePlan` using a cached numba-jitted function."""

  def __init__(self) -> None:
    self._jitted_function: Callable[..., _NDArray] | None = None

  def __call__(self, plan: ResamplePlan, values: _NDArray) -> _NDArray:
    assert 'numba' in globals()

    def func(values: _NDArray, xmin: _NDArray, xmax: _NDArray, weight: _NDArray,
             norm: _NDArray) -> _NDArray:
      dst_size = xmin.shape[0]
      num_columns = values.shape[1]
      result = np.zeros((dst_size, num_columns), np.float64)
      # Each output sample reads only from `values` and writes only its own row of `result`.
      for i in numba.prange(dst_size):
        for x in range(xmin[i], xmax[i]):
          w = weight[i, x - xmin[i]]
          for j in range(num_columns):
            result[i, j] += values[x, j] * w
        for j in range(num_columns):
          result[i, j] *= norm[i]
      return result

    if self._jitted_function is None:
      if 0:
        print('Creating numba jit-wrapper for resample plans.')
      # With nogil, other Python threads may run during the (possibly long) convolution.
      self._jitted_function = numba.njit(func, nogil=True, parallel=True)
    values = np.ascontiguousarray(values, np.float64)
    return self._jitted_function(values, plan.xmin, plan.xmax, plan.weight, plan.norm)


_convolve_using_numba = _ConvolveUsingNumba()


def _convolve_using_sparse_matrix(plan: ResamplePlan, values: _NDArray) -> _NDArray:
  # Calls scipy.sparse._sparsetools.csr_matvecs(), which accumulates the taps of each row in
  # order of increasing source index.
  result = plan.matrix() @ values
  return np.asarray(result, np.float64) * plan.norm[:, None]


def apply_resample_plan(plan: ResamplePlan, values: _ArrayLike, *,
                        use_numba: bool | None = None) -> _NDArray:
  """Resample `values` along its first axis according to `plan`.

  Args:
    plan: The convolution windows, e.g. from `create_resample_plan`.
    values: Array of shape `(plan.src_size, ...)`.
    use_numba: Whether to use the numba-jitted convolution rather than a `scipy.sparse` matrix
      product.  If `None`, numba is used if it is installed.

  Returns:
    A float64 array of shape `(plan.dst_size, ...)`.
  """
  values = np.asarray(values, np.float64)
  if values.ndim == 0 or values.shape[0] != plan.src_size:
    raise InvalidArgumentError(
        f'Array of shape {values.shape} does not match source size {plan.src_size}.')
  values_flat = values.reshape(plan.src_size, math.prod(values.shape[1:]))
  if use_numba is None:
    use_numba = 'numba' in globals()
  if use_numba:
    result = _convolve_using_numba(plan, values_flat)
  else:
    result = _convolve_using_sparse_matrix(plan, values_flat)
  return result.reshape(plan.dst_size, *values.shape[1:])


def stretch_horizontal(dst: Image, src: Image, filter: str | int | Filter = _DEFAULT_FILTER, *,
                       use_numba: bool | None = None) -> Image:
  """Resample the width of `src` onto the width of `dst`.

  Args:
    dst: Pre-allocated output image, with the same mode and height as `src`.
    src: Source image.
    filter: The reconstruction kernel, specified as a name in `FILTERS`, a `Resampling` code, or
      a `Filter` instance.
    use_numba: See `apply_resample_plan`.

  Returns:
    The image `dst`.

  Raises:
    ModeMismatchError: If the modes differ or the mode has no resampling representation.
    InvalidArgumentError: If the heights differ, a width is zero, or the filter is unsupported.
  """
  if dst.mode != src.mode:
    raise ModeMismatchError(f'Source mode {src.mode.name} differs from destination mode'
                            f' {dst.mode.name}.')
  filter = _get_filter(filter)
  _get_storage(src.mode)
  if dst.height != src.height:
    raise InvalidArgumentError(f'Horizontal stretch requires equal heights, but source height'
                               f' {src.height} differs from destination height {dst.height}.')
  filter = _get_filter(filter)
  storage = _get_storage(src.mode)
  plan = create_resample_plan(src.width, dst.width, filter)
  values = apply_resample_plan(plan, storage.gather(src), use_numba=use_numba)
  storage.scatter(dst, values)
  return dst


def transpose(dst: Image, src: Image) -> Image:
  """Copy the transpose of `src` into `dst`, whose size must be `(src.height, src.width)`."""
  if dst.mode != src.mode:
    raise ModeMismatchError(f'Source mode {src.mode.name} differs from destination mode'
                            f' {dst.mode.name}.')
  if dst.size != (src.height, src.width):
    raise InvalidArgumentError(f'Destination size {dst.size} is not the transpose of source size'
                               f' {src.size}.')
  dst.pixels[...] = np.swapaxes(src.pixels, 0, 1)
  return dst


class Allocator:
  """Source of the intermediate images used by `stretch`.

  Subclasses may track or limit allocations; every allocated image is eventually passed to
  `release`, including when `stretch` fails.
  """

  def allocate(self, mode: Mode, width: int, height: int) -> Image:
    return new_image(mode, width, height)

  def release(self, image: Image) -> None:
    image.release()


_DEFAULT_ALLOCATOR = Allocator()


def stretch(dst: Image, src: Image, filter: str | int | Filter = _DEFAULT_FILTER, *,
            allocator: Allocator | None = None, use_numba: bool | None = None) -> Image:
  """Resample `src` onto both dimensions of `dst` using two separable passes.

  The width is resampled first; the intermediate image is transposed, its new width (the
  original height) is resampled, and the result is transposed back into `dst`.

  Args:
    dst: Pre-allocated output image with the same mode as `src`; its size is the target size.
    src: Source image, whose mode must not be palette-indexed (`'P'`) or bilevel (`'1'`).
    filter: The reconstruction kernel, specified as a name in `FILTERS`, a `Resampling` code, or
      a `Filter` instance.
    allocator: Source of the three intermediate images.  All intermediates are released before
      returning, whether or not an exception is raised.
    use_numba: See `apply_resample_plan`.

  Returns:
    The image `dst`.
  """
  if not src.mode.resamplable:
    raise ModeMismatchError(f'Images of mode {src.mode.name} cannot be resampled.')
  if dst.mode != src.mode:
    raise ModeMismatchError(f'Source mode {src.mode.name} differs from destination mode'
                            f' {dst.mode.name}.')
  filter = _get_filter(filter)
  _get_storage(src.mode)
  allocator = _DEFAULT_ALLOCATOR if allocator is None else allocator
  width, height = dst.size
  intermediates: list[Image] = []

  def allocate(width: int, height: int) -> Image:
    image = allocator.allocate(src.mode, width, height)
    intermediates.append(image)
    return image

  def release(image: Image) -> None:
    intermediates.remove(image)
    allocator.release(image)

  try:
    image1 = allocate(width, src.height)
    stretch_horizontal(image1, src, filter, use_numba=use_numba)
    image2 = allocate(src.height, width)
    transpose(image2, image1)
    release(image1)
    image3 = allocate(height, width)
    stretch_horizontal(image3, image2, filter, use_numba=use_numba)
    release(image2)
    transpose(dst, image3)
    release(image3)
  finally:
    while intermediates:
      release(intermediates[-1])
  return dst


def resize_image(image: Image, size: Iterable[int], *,
                 filter: str | int | Filter = _DEFAULT_FILTER,
                 use_numba: bool | None = None) -> Image:
  """Return a new image of `size = (width, height)` resampled from `image` using `stretch`."""
  width, height = size
  dst = new_image(image.mode, width, height)
  return stretch(dst, image, filter, use_numba=use_numba)


def resize(array: _ArrayLike, shape: Iterable[int], *,
           filter: str | int | Filter = _DEFAULT_FILTER, mode: str | Mode | None = None,
           use_numba: bool | None = None) -> _NDArray:
  """Resample a 2D grid of pixels onto a grid with resolution `shape = (height, width)`.

  The array is converted to an `Image` using `fromarray`, so its sample type is that of the
  image mode: a `float64` array produces a `float32` result, and `uint8` results are rounded and
  clamped to [0, 255].

  Args:
    array: Samples with shape `(height, width)` or `(height, width, bands)`.
    shape: The number of output pixels in each of the two grid dimensions.
    filter: The reconstruction kernel, specified as a name in `FILTERS`, a `Resampling` code, or
      a `Filter` instance.
    mode: Pixel mode of `array`; see `fromarray`.
    use_numba: See `apply_resample_plan`.

  Returns:
    An array with shape `shape + array.shape[2:]`.

  >>> resize(np.array([[0.0, 100.0, 200.0, 100.0]]), (1, 2), filter='bilinear')
  array([[ 71.42857, 142.85715]], dtype=float32)
  """
  shape = tuple(shape)
  if len(shape) != 2:
    raise InvalidArgumentError(f'Shape {shape} is not two-dimensional.')
  image = fromarray(array, mode)
  height, width = shape
  return resize_image(image, (width, height), filter=filter, use_numba=use_numba).numpy()
