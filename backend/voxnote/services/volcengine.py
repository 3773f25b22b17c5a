"""Volcengine (Doubao) big-model ASR over the binary WebSocket protocol, non-streaming."""

import asyncio
import io
import json
import struct
import time

import numpy as np
import soundfile as sf
from loguru import logger
from websockets.asyncio.client import ClientConnection, connect

from voxnote.config import VolcengineConfig
from voxnote.services.base import Transcriber

WSS_URL_NOSTREAM = "wss://openspeech.bytedance.com/api/v3/sauc/bigmodel_nostream"

HEADER_FULL_CLIENT = 0x11101000
HEADER_AUDIO_ONLY = 0x11200000
HEADER_AUDIO_LAST = 0x11220000

MESSAGE_TYPE_FULL_SERVER = 0x09
MESSAGE_TYPE_ERROR = 0x0F
FLAG_LAST_PACKAGE = 0x03

CHUNK_SAMPLES = 3200  # 200ms at 16k
CHUNK_BYTES = CHUNK_SAMPLES * 2

TARGET_SAMPLE_RATE = 16000
RESULT_TIMEOUT_SEC = 30


def _connect_id() -> str:
    t = time.time_ns()
    return f"{t // 1_000_000}-{((t % 1_000_000) // 10) % 100000:05d}"


def build_packet(header: int, payload: bytes) -> bytes:
    """4-byte header, 4-byte big-endian payload size, payload."""
    packet = bytearray(8 + len(payload))
    struct.pack_into(">I", packet, 0, header)
    struct.pack_into(">I", packet, 4, len(payload))
    packet[8:] = payload
    return bytes(packet)


def read_wav_to_16k_mono(data: bytes) -> bytes:
    """Decode WAV bytes into 16k mono int16 PCM. Raises on formats libsndfile cannot read."""
    audio, sr = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
    audio = audio[:, 0]
    if sr != TARGET_SAMPLE_RATE:
        # linear resampling
        in_len = len(audio)
        out_len = int(in_len * TARGET_SAMPLE_RATE / sr)
        indices = np.linspace(0, in_len - 1, out_len)
        audio = np.interp(indices, np.arange(in_len), audio)
    pcm = (audio * 32767).astype(np.int16)
    return pcm.tobytes()


def parse_server_message(data: bytes) -> tuple[str | None, bool]:
    """
    Return (text, is_last) for a server frame.
    Frames that are not full server responses yield ``(None, False)``.
    """
    if len(data) < 4:
        return None, False
    message_type = (data[1] >> 4) & 0x0F
    flags = data[1] & 0x0F
    if message_type == MESSAGE_TYPE_ERROR:
        code = struct.unpack_from(">I", data, 4)[0] if len(data) >= 8 else 0
        raise RuntimeError(f"Volcengine ASR error: code={code}")
    if message_type != MESSAGE_TYPE_FULL_SERVER or len(data) < 12:
        return None, False
    payload_size = struct.unpack_from(">I", data, 8)[0]
    if len(data) < 12 + payload_size:
        return None, False
    text = None
    try:
        obj = json.loads(data[12 : 12 + payload_size].decode("utf-8"))
        raw = obj.get("result")
        if isinstance(raw, dict):
            text = raw.get("text")
        elif isinstance(raw, str):
            text = raw
    except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
        pass
    return text, flags == FLAG_LAST_PACKAGE


async def _receive_final_result(ws: ClientConnection) -> str:
    """
    Collect full server responses until the last package or an error frame.
    Raises when the last package does not arrive within RESULT_TIMEOUT_SEC.
    """
    result: list[str] = []

    async def _collect() -> None:
        async for message in ws:
            if not isinstance(message, (bytes, bytearray)):
                continue
            text, is_last = parse_server_message(bytes(message))
            if text:
                result.append(text)
            if is_last:
                break

    try:
        await asyncio.wait_for(_collect(), timeout=RESULT_TIMEOUT_SEC)
    except asyncio.TimeoutError as e:
        logger.warning(f"{RESULT_TIMEOUT_SEC=} {len(result)=}")
        raise RuntimeError(f"Volcengine ASR timed out after {RESULT_TIMEOUT_SEC}s") from e
    return "".join(result).strip()


class VolcengineTranscriber(Transcriber):
    """Only WAV input is supported; other formats fail to decode."""

    name = "volcengine"

    def __init__(self, config: VolcengineConfig) -> None:
        self.config = config

    async def transcribe(self, data: bytes, filename: str, content_type: str | None = None) -> str:
        pcm_bytes = await asyncio.to_thread(read_wav_to_16k_mono, data)
        connect_id = _connect_id()
        headers = {
            "X-Api-App-Key": self.config.app_key,
            "X-Api-Access-Key": self.config.access_key,
            "X-Api-Resource-Id": self.config.resource_id,
            "X-Api-Connect-Id": connect_id,
        }
        logger.debug(f"{connect_id=} {filename=} {len(pcm_bytes)=}")

        async with connect(WSS_URL_NOSTREAM, additional_headers=headers, proxy=None) as ws:
            body = {
                "audio": {"format": "pcm", "codec": "raw", "rate": TARGET_SAMPLE_RATE, "bits": 16, "channel": 1},
                "request": {"model_name": "bigmodel", "enable_itn": True, "enable_punc": True},
            }
            await ws.send(build_packet(HEADER_FULL_CLIENT, json.dumps(body, ensure_ascii=False).encode("utf-8")))

            offset = 0
            while True:
                chunk = pcm_bytes[offset : offset + CHUNK_BYTES]
                offset += len(chunk)
                is_last = offset >= len(pcm_bytes)
                await ws.send(build_packet(HEADER_AUDIO_LAST if is_last else HEADER_AUDIO_ONLY, chunk))
                if is_last:
                    break
                await asyncio.sleep(0.05)

            return await _receive_final_result(ws)
