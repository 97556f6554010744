import io

from PIL import Image

from tryon.geometry import Transform2D
from tryon.render import Layer, PillowSurface, Scene, to_data_uri

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def surface_for(images):
	# PillowSurface closes what the loader returns, so hand out copies.
	return PillowSurface(lambda ref: images[ref].copy())


def layer(ref, im, **t):
	base = dict(scale_x=1.0, scale_y=1.0, left=0.0, top=0.0)
	base.update(t)
	return Layer(ref, im.width, im.height, Transform2D(**base))


def test_clothing_is_drawn_over_base_over_background():
	base = Image.new("RGBA", (50, 50), RED)
	cloth = Image.new("RGBA", (20, 20), BLUE)
	images = {"base": base, "cloth": cloth}
	scene = Scene(
		width=100,
		height=100,
		background=(0, 255, 0, 255),
		layers=[layer("base", base), layer("cloth", cloth, left=40, top=40)],
	)
	out = surface_for(images).compose(scene)
	assert out.getpixel((45, 45)) == BLUE
	assert out.getpixel((10, 10)) == RED
	assert out.getpixel((80, 80)) == (0, 255, 0, 255)


def test_transparent_background_stays_transparent():
	base = Image.new("RGBA", (10, 10), RED)
	out = surface_for({"b": base}).compose(Scene(width=30, height=30, layers=[layer("b", base)]))
	assert out.getpixel((25, 25))[3] == 0


def test_layer_scale_is_applied():
	base = Image.new("RGBA", (10, 10), RED)
	out = surface_for({"b": base}).compose(Scene(width=40, height=40, layers=[layer("b", base, scale_x=2.0, scale_y=3.0)]))
	r, g, b, a = out.getpixel((19, 29))
	assert r > 240 and a > 240
	assert out.getpixel((21, 5))[3] == 0
	assert out.getpixel((5, 31))[3] == 0


def test_layers_partly_or_fully_off_canvas():
	base = Image.new("RGBA", (20, 20), RED)
	scene = Scene(
		width=30,
		height=30,
		layers=[layer("b", base, left=-10, top=-10), layer("b", base, left=-1000, top=5000)],
	)
	out = surface_for({"b": base}).compose(scene)
	assert out.getpixel((5, 5)) == RED
	assert out.getpixel((15, 15))[3] == 0


def test_rotation_turns_clockwise_about_top_left():
	asset = Image.new("RGBA", (10, 20), BLUE)
	scene = Scene(width=100, height=100, layers=[layer("a", asset, left=50, top=50, rotation=90)])
	out = surface_for({"a": asset}).compose(scene)
	# 10x20 turned 90 degrees about (50, 50) covers x 30..50, y 50..60
	assert out.getpixel((40, 55)) == BLUE
	assert out.getpixel((55, 55))[3] == 0
	assert out.getpixel((40, 65))[3] == 0


def test_flatten_produces_png():
	base = Image.new("RGBA", (10, 10), RED)
	png = surface_for({"b": base}).flatten(Scene(width=10, height=10, layers=[layer("b", base)]))
	assert png[:8] == b"\x89PNG\r\n\x1a\n"
	with Image.open(io.BytesIO(png)) as im:
		assert im.size == (10, 10)
	assert to_data_uri(png).startswith("data:image/png;base64,")
