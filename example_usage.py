# %% [markdown]
# # scanline_resampler: Example usage

# %%
"""Simple examples of `scanline_resampler` usage."""

import numpy as np

import scanline_resampler

# %% [markdown]
# ### Upsample (magnify) a scanline

# %%
row = np.array([10, 20, 30, 40], np.uint8)
for filter in scanline_resampler.FILTERS:
  print(f'{filter:10} {scanline_resampler.resize_scanline(row, 8, filter=filter)}')

# %% [markdown]
# ### Downsample (minify) a scanline

# %%
array = np.cos(np.linspace(0.0, 12.0, 40)) * 100.0 + 128.0
print(scanline_resampler.resize_scanline(array, 10, filter='box'))
print(scanline_resampler.resize_scanline(array.astype(np.uint8), 10, filter='lanczos3'))

# %% [markdown]
# ### Rounding policy for integer samples

# %%
ramp = np.array([0, 1], np.uint8)
for rounding in scanline_resampler.ROUNDINGS:
  print(rounding, scanline_resampler.resize_scanline(ramp, 4, filter='triangle', rounding=rounding))

# %% [markdown]
# ### Resize an image with separable row and column passes


# %%
def resize_image(image: np.ndarray, shape: tuple[int, int], filter: str) -> np.ndarray:
  """Resize a 2D image by resampling each row, then each column using a stride."""
  height, width = image.shape
  new_height, new_width = shape
  rows = np.empty((height, new_width), image.dtype)
  for y in range(height):
    scanline_resampler.resample_scanline(image[y], rows[y], width, new_width, filter)
  result = np.empty((new_height, new_width), image.dtype)
  rows_flat, result_flat = rows.reshape(-1), result.reshape(-1)
  for x in range(new_width):
    scanline_resampler.resample_scanline(
        rows_flat[x:], result_flat[x:], height, new_height, filter, stride=new_width)
  return result


image = (np.indices((6, 8)).sum(axis=0) * 18).astype(np.uint8)
print(resize_image(image, (12, 5), 'hann4'))
