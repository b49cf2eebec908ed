"""Local media handling: temp files, ffprobe/ffmpeg, classification."""
