"""
Shared constants and defaults.
"""

import math

# Largest possible energy: both 3-tap gradients saturate at 4
HEATMAP_SCALE = math.sqrt(32)

HIGHLIGHT_COLOR = (255, 0, 0)
BORDER_COLOR = (0, 0, 0)

DIRECTIONS = ('vertical', 'horizontal')
RENDER_MODES = ('original', 'energy')

# Verify the link invariant after every committed removal or undo
DEFAULT_STRICT = True
