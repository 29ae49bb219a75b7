"""Create a test page of notes for OCR testing."""

from PIL import Image, ImageDraw

width, height = 800, 600
image = Image.new("RGB", (width, height), color="white")
draw = ImageDraw.Draw(image)

text_content = [
    "Photosynthesis - class notes",
    "",
    "1. Plants make food using sunlight.",
    "2. Needs water, carbon dioxide and chlorophyll.",
    "3. Gives out oxygen.",
    "",
    "6CO2 + 6H2O -> C6H12O6 + 6O2",
]

y_position = 50
for line in text_content:
    draw.text((50, y_position), line, fill="black")
    y_position += 40

output_path = "test_notes.png"
image.save(output_path)
print(f"Created test image: {output_path}")
print(f"Try it with: python examples/process_local_file.py {output_path} --engine mock")
