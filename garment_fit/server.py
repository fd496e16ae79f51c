"""
Flask Server for Virtual Try-On
Serves the try-on video stream, the live size/view state and photo try-on.
"""

import argparse
import logging
import threading
import time

import cv2
import numpy as np
from flask import Flask, Response, jsonify, render_template_string, request
from flask_cors import CORS

from garment_fit.backends import NoPoseDetectedError, available_backends, get_backend
from garment_fit.config import load_config
from garment_fit.tryon_engine import TryOnEngine

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend access

# Global variables
camera = None
camera_lock = threading.Lock()
frame_lock = threading.Lock()
photo_lock = threading.Lock()
is_running = False
tryon_engine = None
engine_config = None
garment_sets = []
photo_backends = {}
current_tryon = {
    "garment": "",
    "view": "front",
    "tracking": False,
    "size": "--",
    "confidence": 0,
    "label": "",
}

# Configuration
CAM_INDEX = 0
FRAME_WIDTH = 640
FRAME_HEIGHT = 480
MAX_UPLOAD_MB = 10

app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_MB * 1024 * 1024


def init_camera():
    """Initialize camera"""
    global camera
    with camera_lock:
        if camera is None or not camera.isOpened():
            camera = cv2.VideoCapture(CAM_INDEX)
            camera.set(cv2.CAP_PROP_FRAME_WIDTH, FRAME_WIDTH)
            camera.set(cv2.CAP_PROP_FRAME_HEIGHT, FRAME_HEIGHT)
            camera.set(cv2.CAP_PROP_FPS, 30)

            if camera.isOpened():
                logger.info("[OK] Camera %d initialized", CAM_INDEX)
                return True
            logger.error("[ERROR] Failed to open camera %d", CAM_INDEX)
            return False
    return True


def release_camera():
    """Release camera resources"""
    global camera
    with camera_lock:
        if camera is not None:
            camera.release()
            camera = None
            logger.info("[INFO] Camera released")


def draw_hud(frame, info):
    """Garment name, view and size suggestion in the top-left corner."""
    cv2.putText(frame, f"{info['garment']} ({info['view']})", (10, 30),
                cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2, cv2.LINE_AA)
    if info["size"] != "--":
        text = f"Size: {info['size']} - {info['label']} ({info['confidence']}%)"
        color = (0, 255, 0)
    else:
        text = "Step back so your hips are visible"
        color = (0, 165, 255)
    cv2.putText(frame, text, (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2, cv2.LINE_AA)
    return frame


def generate_frames():
    """Generate video frames with try-on overlay"""
    global is_running, current_tryon

    is_running = True

    if not init_camera():
        is_running = False
        return

    while is_running:
        with camera_lock:
            if camera is None or not camera.isOpened():
                break
            ret, frame = camera.read()

        if not ret:
            time.sleep(0.1)
            continue

        # Mirror the frame for selfie view
        frame = cv2.flip(frame, 1)

        if tryon_engine is not None:
            # One frame at a time through the pipeline
            with frame_lock:
                frame, info = tryon_engine.process_frame(frame)
            current_tryon = info
            frame = draw_hud(frame, info)

        ret, buffer = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, 85])
        if not ret:
            continue

        yield (b'--frame\r\n'
               b'Content-Type: image/jpeg\r\n\r\n' + buffer.tobytes() + b'\r\n')

    is_running = False


@app.route('/')
def index():
    """Simple test page"""
    return render_template_string('''
    <!DOCTYPE html>
    <html>
    <head>
        <title>Virtual Try-On</title>
        <style>
            body { font-family: Arial, sans-serif; background: #1a1a1a; color: white;
                   display: flex; flex-direction: column; align-items: center; padding: 20px; }
            h1 { color: #3b82f6; }
            .video-container { border: 2px solid #3b82f6; border-radius: 12px; overflow: hidden; margin: 20px 0; }
            img { display: block; }
        </style>
    </head>
    <body>
        <h1>Virtual Try-On</h1>
        <div class="video-container">
            <img src="/tryon_feed" width="640" height="480" alt="Video Feed">
        </div>
        <p id="size-status">Size: --</p>
        <script>
            setInterval(async () => {
                try {
                    const r = await fetch('/api/tryon/status');
                    const d = await r.json();
                    document.getElementById('size-status').textContent =
                        'View: ' + d.view + ' | Size: ' + d.size + ' ' + d.label;
                } catch (e) {}
            }, 500);
        </script>
    </body>
    </html>
    ''')


@app.route('/tryon_feed')
def tryon_feed():
    """Try-on video streaming route"""
    return Response(
        generate_frames(),
        mimetype='multipart/x-mixed-replace; boundary=frame'
    )


@app.route('/api/status')
def get_status():
    return jsonify({
        'running': is_running,
        'camera_index': CAM_INDEX,
        'engine_loaded': tryon_engine is not None,
        'backends': available_backends(),
    })


@app.route('/api/tryon/status')
def get_tryon_status():
    """Current view and size suggestion for the UI"""
    return jsonify(current_tryon)


@app.route('/api/tryon/next')
def tryon_next():
    if tryon_engine is not None:
        with frame_lock:
            tryon_engine.next_garment()
    return jsonify({'status': 'ok'})


@app.route('/api/tryon/prev')
def tryon_prev():
    if tryon_engine is not None:
        with frame_lock:
            tryon_engine.prev_garment()
    return jsonify({'status': 'ok'})


@app.route('/api/tryon/reset')
def tryon_reset():
    if tryon_engine is not None:
        with frame_lock:
            tryon_engine.reset_for_next_user()
    return jsonify({'status': 'ok'})


@app.route('/api/tryon/reload')
def tryon_reload():
    """Reload garments from folder (after adding/deleting files)"""
    global garment_sets
    if tryon_engine is None:
        return jsonify({'status': 'error', 'message': 'Engine not loaded'})
    try:
        with frame_lock:
            count = tryon_engine.reload_garments()
            garment_sets = tryon_engine.garments
    except FileNotFoundError as e:
        return jsonify({'status': 'error', 'message': str(e)}), 404
    return jsonify({'status': 'ok', 'count': count, 'items': tryon_engine.get_garment_list()})


@app.route('/api/tryon/list')
def tryon_list():
    """Get list of all available garments"""
    items = [g.name for g in garment_sets]
    return jsonify({'items': items, 'count': len(items)})


def _find_garment(name):
    if not garment_sets:
        return None
    if not name:
        return garment_sets[0]
    for g in garment_sets:
        if g.name == name:
            return g
    return None


def _backend(name):
    if name not in photo_backends:
        photo_backends[name] = get_backend(name, config=engine_config)
    return photo_backends[name]


@app.route('/api/try-on/process', methods=['POST'])
def tryon_process():
    """Fit a garment onto an uploaded photo and return it as PNG"""
    upload = request.files.get('photo')
    if upload is None:
        return jsonify({'message': "Missing 'photo' upload"}), 400

    data = np.frombuffer(upload.read(), dtype=np.uint8)
    photo = cv2.imdecode(data, cv2.IMREAD_COLOR) if data.size else None
    if photo is None:
        return jsonify({'message': 'Could not decode photo'}), 400

    garment_name = request.form.get('garment')
    garment = _find_garment(garment_name)
    if garment is None:
        return jsonify({'message': f"Unknown garment '{garment_name}'"}), 404

    try:
        backend = _backend(request.form.get('backend', 'local'))
    except KeyError as e:
        return jsonify({'message': str(e.args[0])}), 400

    try:
        with photo_lock:
            result = backend.process(photo, garment)
    except NoPoseDetectedError as e:
        return jsonify({'message': str(e)}), 400

    ok, buffer = cv2.imencode('.png', result)
    if not ok:
        return jsonify({'message': 'Failed to encode result'}), 500
    return Response(buffer.tobytes(), mimetype='image/png')


@app.route('/api/start')
def start_stream():
    """Start the video stream"""
    global is_running
    if not is_running:
        is_running = True
        return jsonify({'status': 'started'})
    return jsonify({'status': 'already running'})


@app.route('/api/stop')
def stop_stream():
    """Stop the video stream"""
    global is_running
    is_running = False
    release_camera()
    return jsonify({'status': 'stopped'})


def main(argv=None):
    global tryon_engine, engine_config, garment_sets, CAM_INDEX

    parser = argparse.ArgumentParser(description="Virtual try-on server")
    parser.add_argument("camera", nargs="?", type=int, default=0, help="camera index")
    parser.add_argument("--garments", default="garments", help="garment folder")
    parser.add_argument("--config", default="config.json", help="engine config (JSON)")
    parser.add_argument("--port", type=int, default=5000)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    CAM_INDEX = args.camera

    print("=" * 50)
    print("Virtual Try-On Server")
    print("=" * 50)

    engine_config = load_config(args.config)
    logger.info("[INFO] Placement variant: %s", engine_config.variant.name)

    logger.info("[INFO] Loading try-on engine...")
    tryon_engine = TryOnEngine(garment_dir=args.garments, config=engine_config)
    garment_sets = tryon_engine.garments

    logger.info("[INFO] Starting server on http://localhost:%d", args.port)
    logger.info("[INFO] Press Ctrl+C to stop")

    app.run(host='0.0.0.0', port=args.port, debug=False, threaded=True)


if __name__ == '__main__':
    main()
