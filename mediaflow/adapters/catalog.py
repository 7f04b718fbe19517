"""Declarative adapter definitions, one per PiAPI model/task combination."""

from __future__ import annotations

from typing import List

from mediaflow.adapters.dsl import AdapterSpec, FieldSpec, WhenEquals, WhenTruthy

WEBHOOK_CONFIG = {"webhook_config": {"endpoint": "", "secret": ""}}
SERVICE_MODES = ["", "public", "private"]


def _prompt(required: bool = True, default: str = "") -> FieldSpec:
    return FieldSpec(name="prompt", target="input.prompt", required=required, default=default)


def _negative() -> FieldSpec:
    return FieldSpec(name="negative_prompt", target="input.negative_prompt", default="")


def _media(name: str, kind: str = "image", target: str | None = None, required: bool = True) -> FieldSpec:
    return FieldSpec(
        name=name,
        kind=kind,
        target=target or f"input.{name}",
        required=required,
        omit="never" if required else "empty",
    )


def _frame(name: str, kind: str) -> FieldSpec:
    return FieldSpec(
        name=name,
        kind=kind,
        target=f"input.key_frames.{name}.url",
        omit="empty",
        siblings={"type": kind},
    )


def _aspect(choices: List[str], default: str) -> FieldSpec:
    return FieldSpec(name="aspect_ratio", target="input.aspect_ratio", choices=choices, default=default)


def _service_mode() -> FieldSpec:
    return FieldSpec(
        name="service_mode", target="config.service_mode", choices=SERVICE_MODES, default="", omit="empty"
    )


# -----------------------
# Flux
# -----------------------

FLUX_MODELS = ["Qubico/flux1-schnell", "Qubico/flux1-dev", "Qubico/flux1-dev-advanced"]

FLUX_TEXT_TO_IMAGE = AdapterSpec(
    name="flux-text-to-image",
    display_name="Flux Text to Image",
    family="flux",
    model="Qubico/flux1-schnell",
    task_type="txt2img",
    model_param="model",
    fields=[
        FieldSpec(name="model", choices=FLUX_MODELS, default="Qubico/flux1-schnell"),
        _prompt(),
        _negative(),
        FieldSpec(name="aspect_ratio", kind="dimensions", target="input", default="1024:1024"),
        FieldSpec(name="guidance_scale", kind="number", target="input.guidance_scale", default=3, minimum=1.5, maximum=5),
        FieldSpec(name="batch_size", kind="integer", target="input.batch_size", default=1, minimum=1, maximum=4),
    ],
    wait_default=True,
)

FLUX_IMAGE_TO_IMAGE = AdapterSpec(
    name="flux-image-to-image",
    display_name="Flux Image to Image",
    family="flux",
    model="Qubico/flux1-dev",
    task_type="img2img",
    model_param="model",
    fields=[
        FieldSpec(name="model", choices=FLUX_MODELS[1:], default="Qubico/flux1-dev"),
        _prompt(),
        _negative(),
        _media("image", target="input.image"),
        FieldSpec(name="aspect_ratio", kind="dimensions", target="input", default="1024:1024"),
        FieldSpec(name="denoise", kind="number", target="input.denoise", default=0.7, minimum=0, maximum=1),
        FieldSpec(name="guidance_scale", kind="number", target="input.guidance_scale", default=3, minimum=1.5, maximum=5),
        FieldSpec(name="batch_size", kind="integer", target="input.batch_size", default=1, minimum=1, maximum=4),
    ],
    wait_default=True,
)

# -----------------------
# Midjourney
# -----------------------

MJ_PROCESS_MODES = ["relax", "fast", "turbo"]
MJ_CONFIG = {"service_mode": "", **WEBHOOK_CONFIG}

MIDJOURNEY_IMAGINE = AdapterSpec(
    name="midjourney-imagine",
    display_name="Midjourney Imagine",
    family="midjourney",
    model="midjourney",
    task_type="imagine",
    fields=[
        _prompt(),
        _aspect(["1:1", "9:16", "16:9", "21:9"], "1:1"),
        FieldSpec(name="process_mode", target="input.process_mode", choices=MJ_PROCESS_MODES, default="fast"),
        FieldSpec(name="skip_prompt_check", kind="boolean", target="input.skip_prompt_check", default=False),
        _service_mode(),
    ],
    config=dict(MJ_CONFIG),
    max_retries=60,
    retry_interval_ms=5000,
)

MIDJOURNEY_UPSCALE = AdapterSpec(
    name="midjourney-upscale",
    display_name="Midjourney Upscale",
    family="midjourney",
    model="midjourney",
    task_type="upscale",
    fields=[
        FieldSpec(name="origin_task_id", target="input.origin_task_id", required=True),
        FieldSpec(name="index", target="input.index", choices=["1", "2", "3", "4"], default="1"),
        _service_mode(),
    ],
    config=dict(MJ_CONFIG),
    max_retries=60,
    retry_interval_ms=5000,
)

MIDJOURNEY_DESCRIBE = AdapterSpec(
    name="midjourney-describe",
    display_name="Midjourney Describe",
    family="midjourney",
    model="midjourney",
    task_type="describe",
    fields=[
        _media("image_url"),
        FieldSpec(name="process_mode", target="input.process_mode", choices=MJ_PROCESS_MODES, default="fast"),
        FieldSpec(name="bot_id", kind="integer", target="input.bot_id", default=0, omit="falsy"),
        _service_mode(),
    ],
    config=dict(MJ_CONFIG),
    max_retries=60,
    retry_interval_ms=5000,
)

# -----------------------
# Dream Machine (Luma)
# -----------------------

LUMA_RATIOS = ["9:16", "3:4", "1:1", "4:3", "16:9", "21:9"]
LUMA_MODELS = ["ray-v1", "ray-v2"]

DREAM_MACHINE_TEXT_TO_VIDEO = AdapterSpec(
    name="dream-machine-text-to-video",
    display_name="Dream Machine Text to Video",
    family="luma",
    model="luma",
    task_type="video_generation",
    fields=[
        _prompt(),
        FieldSpec(name="model_name", target="input.model_name", choices=LUMA_MODELS, default="ray-v1"),
        FieldSpec(name="duration", kind="integer", target="input.duration", choices=[5, 10], default=5),
        _aspect(LUMA_RATIOS, "16:9"),
        _service_mode(),
    ],
    config={"service_mode": ""},
)

DREAM_MACHINE_IMAGE_TO_VIDEO = AdapterSpec(
    name="dream-machine-image-to-video",
    display_name="Dream Machine Image to Video",
    family="luma",
    model="luma",
    task_type="video_generation",
    fields=[
        _prompt(),
        _frame("frame0", "image"),
        _frame("frame1", "image"),
        FieldSpec(name="model_name", target="input.model_name", choices=LUMA_MODELS, default="ray-v1"),
        FieldSpec(name="duration", kind="integer", target="input.duration", choices=[5, 10], default=5),
        _aspect(LUMA_RATIOS, "16:9"),
        _service_mode(),
    ],
    require_one_of=[["frame0", "frame1"]],
    config={"service_mode": ""},
)

DREAM_MACHINE_EXTEND_VIDEO = AdapterSpec(
    name="dream-machine-extend-video",
    display_name="Dream Machine Extend Video",
    family="luma",
    model="luma",
    task_type="extend_video",
    fields=[
        _prompt(),
        FieldSpec(name="video", kind="video", target="input.key_frames.frame0.url", required=True,
                  siblings={"type": "video"}),
        FieldSpec(name="model_name", target="input.model_name", choices=LUMA_MODELS, default="ray-v1"),
        _aspect(LUMA_RATIOS, "16:9"),
        _service_mode(),
    ],
    config={"service_mode": ""},
)

# -----------------------
# Kling
# -----------------------

KLING_RATIOS = ["16:9", "9:16", "1:1"]
KLING_VERSIONS = ["1.0", "1.5", "1.6", "2.0", "2.1", "2.1-master"]


def _kling_video_fields() -> List[FieldSpec]:
    return [
        _negative(),
        FieldSpec(name="duration", kind="integer", target="input.duration", choices=[5, 10], default=5),
        _aspect(KLING_RATIOS, "16:9"),
        FieldSpec(name="mode", target="input.mode", choices=["std", "pro"], default="std"),
        FieldSpec(name="version", target="input.version", choices=KLING_VERSIONS, default="1.6"),
        FieldSpec(name="cfg_scale", kind="number", target="input.cfg_scale", default=0.5, minimum=0, maximum=1),
    ]


KLING_TEXT_TO_VIDEO = AdapterSpec(
    name="kling-text-to-video",
    display_name="Kling Text to Video",
    family="kling",
    model="kling",
    task_type="video_generation",
    fields=[_prompt(), *_kling_video_fields()],
    config=dict(WEBHOOK_CONFIG),
)

KLING_IMAGE_TO_VIDEO = AdapterSpec(
    name="kling-image-to-video",
    display_name="Kling Image to Video",
    family="kling",
    model="kling",
    task_type="video_generation",
    fields=[
        _prompt(required=False),
        _media("image_url", required=False),
        _media("image_tail_url", required=False),
        FieldSpec(name="elements", kind="image_list", target="input.elements", min_items=1, max_items=4, omit="empty"),
        *_kling_video_fields(),
    ],
    require_one_of=[["image_url", "elements"]],
    config=dict(WEBHOOK_CONFIG),
)

KLING_VIDEO_EXTEND = AdapterSpec(
    name="kling-video-extend",
    display_name="Kling Video Extend",
    family="kling",
    model="kling",
    task_type="extend_video",
    fields=[FieldSpec(name="origin_task_id", target="input.origin_task_id", required=True)],
    config=dict(WEBHOOK_CONFIG),
)

KLING_LIP_SYNC = AdapterSpec(
    name="kling-lip-sync",
    display_name="Kling Lip Sync",
    family="kling",
    model="kling",
    task_type="lip_sync",
    fields=[
        FieldSpec(name="origin_task_id", target="input.origin_task_id", required=True),
        FieldSpec(name="audio_source", choices=["tts", "audio_url"], default="tts"),
        FieldSpec(name="tts_text", target="input.tts_text", when=WhenEquals(param="audio_source", equals="tts"), required=True),
        FieldSpec(name="tts_timbre", target="input.tts_timbre", default="Rock", when=WhenEquals(param="audio_source", equals="tts")),
        FieldSpec(name="tts_speed", kind="number", target="input.tts_speed", default=1, minimum=0.8, maximum=2,
                  when=WhenEquals(param="audio_source", equals="tts")),
        FieldSpec(name="local_dubbing_url", kind="audio", target="input.local_dubbing_url", required=True,
                  when=WhenEquals(param="audio_source", equals="audio_url")),
    ],
    config=dict(WEBHOOK_CONFIG),
)

KLING_EFFECTS = AdapterSpec(
    name="kling-effects",
    display_name="Kling Effects",
    family="kling",
    model="kling",
    task_type="effects",
    fields=[
        _media("image_url"),
        FieldSpec(name="effect", target="input.effect", choices=["squish", "expansion"], default="squish"),
    ],
    config=dict(WEBHOOK_CONFIG),
)

KLING_TRY_ON = AdapterSpec(
    name="kling-try-on",
    display_name="Kling Virtual Try On",
    family="kling",
    model="kling",
    task_type="ai_try_on",
    fields=[
        _media("model_input"),
        _media("dress_input", required=False),
        _media("upper_input", required=False),
        _media("lower_input", required=False),
        FieldSpec(name="batch_size", kind="integer", target="input.batch_size", default=1, minimum=1, maximum=4),
    ],
    require_one_of=[["dress_input", "upper_input", "lower_input"]],
    config=dict(WEBHOOK_CONFIG),
)

# -----------------------
# Hailuo
# -----------------------

HAILUO_TEXT_TO_VIDEO = AdapterSpec(
    name="hailuo-text-to-video",
    display_name="Hailuo Text to Video",
    family="hailuo",
    model="hailuo",
    task_type="video_generation",
    fields=[
        _prompt(),
        FieldSpec(name="model", target="input.model", choices=["t2v-01", "t2v-01-director"], default="t2v-01"),
        FieldSpec(name="expand_prompt", kind="boolean", target="input.expand_prompt", default=False),
    ],
)

HAILUO_IMAGE_TO_VIDEO = AdapterSpec(
    name="hailuo-image-to-video",
    display_name="Hailuo Image to Video",
    family="hailuo",
    model="hailuo",
    task_type="video_generation",
    fields=[
        _prompt(required=False),
        _media("image_url"),
        FieldSpec(name="model", target="input.model", choices=["i2v-01", "i2v-01-live", "i2v-01-director"], default="i2v-01"),
        FieldSpec(name="expand_prompt", kind="boolean", target="input.expand_prompt", default=False),
    ],
)

HAILUO_SUBJECT_VIDEO = AdapterSpec(
    name="hailuo-subject-video",
    display_name="Hailuo Subject Reference Video",
    family="hailuo",
    model="hailuo",
    task_type="video_generation",
    fields=[
        _prompt(),
        _media("image_url"),
        FieldSpec(name="model", target="input.model", choices=["s2v-01"], default="s2v-01"),
        FieldSpec(name="expand_prompt", kind="boolean", target="input.expand_prompt", default=False),
    ],
)

# -----------------------
# Hunyuan / WanX / Skyreels
# -----------------------

HUNYUAN_TEXT_TO_VIDEO = AdapterSpec(
    name="hunyuan-text-to-video",
    display_name="Hunyuan Text to Video",
    family="hunyuan",
    model="Qubico/hunyuan",
    task_type="txt2video",
    task_type_param="task_type",
    fields=[
        FieldSpec(name="task_type", choices=["txt2video", "fast-txt2video"], default="txt2video"),
        _prompt(),
        _aspect(KLING_RATIOS, "16:9"),
    ],
)

HUNYUAN_IMAGE_TO_VIDEO = AdapterSpec(
    name="hunyuan-image-to-video",
    display_name="Hunyuan Image to Video",
    family="hunyuan",
    model="Qubico/hunyuan",
    task_type="img2video-concat",
    task_type_param="task_type",
    fields=[
        FieldSpec(name="task_type", choices=["img2video-concat", "img2video-replace"], default="img2video-concat"),
        _prompt(),
        _media("image_url"),
        _aspect(KLING_RATIOS, "16:9"),
    ],
)

WANX_TEXT_TO_VIDEO = AdapterSpec(
    name="wanx-text-to-video",
    display_name="WanX Text to Video",
    family="wanx",
    model="Qubico/wanx",
    task_type="txt2video-1.3b",
    task_type_param="model",
    fields=[
        FieldSpec(name="model", choices=["txt2video-1.3b", "txt2video-14b", "txt2video-14b-lora"], default="txt2video-1.3b"),
        _prompt(),
        _negative(),
        _aspect(["16:9", "9:16"], "16:9"),
        FieldSpec(name="lora_type", target="input.lora_settings.lora_type", default="ghibli",
                  when=WhenEquals(param="model", equals="txt2video-14b-lora")),
        FieldSpec(name="lora_strength", kind="number", target="input.lora_settings.lora_strength", default=1,
                  minimum=0, maximum=2, when=WhenEquals(param="model", equals="txt2video-14b-lora")),
    ],
    wait_default=True,
)

WANX_IMAGE_TO_VIDEO = AdapterSpec(
    name="wanx-image-to-video",
    display_name="WanX Image to Video",
    family="wanx",
    model="Qubico/wanx",
    task_type="img2video-14b",
    task_type_param="model",
    fields=[
        FieldSpec(name="model", choices=["img2video-14b", "img2video-14b-keyframe"], default="img2video-14b"),
        _prompt(),
        _negative(),
        _media("image"),
        _aspect(["16:9", "9:16"], "16:9"),
    ],
)

SKYREELS_IMAGE_TO_VIDEO = AdapterSpec(
    name="skyreels-image-to-video",
    display_name="Skyreels Image to Video",
    family="skyreels",
    model="Qubico/skyreels",
    task_type="img2video",
    fields=[
        _prompt(default="FPS-24, "),
        _negative(),
        _media("image"),
        _aspect(KLING_RATIOS, "16:9"),
        FieldSpec(name="guidance_scale", kind="number", target="input.guidance_scale", default=3.5, minimum=0.1, maximum=10),
    ],
)

# -----------------------
# Toolkits
# -----------------------

FACESWAP_IMAGE = AdapterSpec(
    name="faceswap-image",
    display_name="Faceswap Image to Image",
    family="faceswap",
    model="Qubico/image-toolkit",
    task_type="face-swap",
    fields=[_media("target_image"), _media("swap_image")],
)

FACESWAP_IMAGE_MULTI = AdapterSpec(
    name="faceswap-image-multi",
    display_name="Faceswap Image to Image (multi-face)",
    family="faceswap",
    model="Qubico/image-toolkit",
    task_type="multi-face-swap",
    fields=[
        _media("target_image"),
        _media("swap_image"),
        FieldSpec(name="swap_faces_index", target="input.swap_faces_index", default="0"),
        FieldSpec(name="target_faces_index", target="input.target_faces_index", default="0"),
    ],
)

FACESWAP_VIDEO = AdapterSpec(
    name="faceswap-video",
    display_name="Faceswap Video to Video",
    family="faceswap",
    model="Qubico/video-toolkit",
    task_type="face-swap",
    fields=[
        _media("swap_image"),
        _media("target_video", kind="video"),
        FieldSpec(name="swap_faces_index", target="input.swap_faces_index", omit="empty"),
        FieldSpec(name="target_faces_index", target="input.target_faces_index", omit="empty"),
    ],
    max_retries=30,
    retry_interval_ms=5000,
)

IMAGE_UPSCALE = AdapterSpec(
    name="image-upscale",
    display_name="Image Upscale",
    family="toolkit",
    model="Qubico/image-toolkit",
    task_type="upscale",
    fields=[
        _media("image"),
        FieldSpec(name="scale", kind="integer", target="input.scale", choices=[2, 4, 8], default=2),
    ],
)

VIDEO_UPSCALE = AdapterSpec(
    name="video-upscale",
    display_name="Video Upscale",
    family="toolkit",
    model="Qubico/video-toolkit",
    task_type="upscale",
    fields=[_media("video", kind="video")],
    max_retries=30,
    retry_interval_ms=5000,
)

REMOVE_BACKGROUND = AdapterSpec(
    name="remove-background",
    display_name="Remove Background",
    family="toolkit",
    model="Qubico/image-toolkit",
    task_type="background-remove",
    fields=[_media("image")],
)

QUBICO_SEGMENT = AdapterSpec(
    name="qubico-segment",
    display_name="Qubico Segment",
    family="toolkit",
    model="Qubico/image-toolkit",
    task_type="segment",
    fields=[
        _media("image"),
        _prompt(),
        _negative(),
        FieldSpec(name="segment_factor", kind="integer", target="input.segment_factor", default=-15, minimum=-128, maximum=128),
    ],
)

# -----------------------
# 3D / audio
# -----------------------

TRELLIS_MODEL_GENERATION = AdapterSpec(
    name="trellis-image-to-3d",
    display_name="Trellis 3D Model Generation",
    family="trellis",
    model="Qubico/trellis",
    task_type="image-to-3d",
    fields=[
        _media("image"),
        FieldSpec(name="seed", kind="integer", target="input.seed", default=0),
        FieldSpec(name="ss_sampling_steps", kind="integer", target="input.ss_sampling_steps", default=50, minimum=10, maximum=50),
        FieldSpec(name="slat_sampling_steps", kind="integer", target="input.slat_sampling_steps", default=50, minimum=10, maximum=50),
        FieldSpec(name="ss_guidance_strength", kind="number", target="input.ss_guidance_strength", default=7.5, minimum=0, maximum=10),
        FieldSpec(name="slat_guidance_strength", kind="number", target="input.slat_guidance_strength", default=3, minimum=0, maximum=10),
    ],
    config=dict(WEBHOOK_CONFIG),
)

MMAUDIO_VIDEO_TO_AUDIO = AdapterSpec(
    name="mmaudio-video-to-audio",
    display_name="MMAudio Video to Audio",
    family="mmaudio",
    model="Qubico/mmaudio",
    task_type="video2audio",
    fields=[
        _prompt(),
        _media("video", kind="video"),
        FieldSpec(name="negative_prompt", target="input.negative_prompt", omit="falsy"),
        FieldSpec(name="steps", kind="integer", target="input.steps", default=20, minimum=20, maximum=50, omit="falsy"),
        FieldSpec(name="seed", kind="integer", target="input.seed", default=0, omit="falsy"),
    ],
    config={},
)

DIFFRHYTHM_AUDIO = AdapterSpec(
    name="diffrhythm-audio",
    display_name="DiffRhythm Audio Generation",
    family="diffrhythm",
    model="Qubico/diffrhythm",
    task_type="txt2audio-base",
    task_type_param="task_type",
    fields=[
        FieldSpec(name="task_type", choices=["txt2audio-base", "txt2audio-full"], default="txt2audio-base"),
        FieldSpec(name="style_prompt", target="input.style_prompt", default="pop"),
        FieldSpec(name="lyrics", target="input.lyrics", omit="empty"),
        _media("style_audio", kind="audio", required=False),
    ],
    config={},
    max_retries=60,
    retry_interval_ms=5000,
)

TEXT_TO_SPEECH = AdapterSpec(
    name="text-to-speech",
    display_name="Text to Speech (zero-shot)",
    family="tts",
    model="Qubico/tts",
    task_type="zero-shot",
    fields=[
        FieldSpec(name="gen_text", target="input.gen_text", required=True),
        _media("ref_audio", kind="audio"),
        FieldSpec(name="include_ref_text", kind="boolean", default=False),
        FieldSpec(name="ref_text", target="input.ref_text", omit="empty", when=WhenTruthy(param="include_ref_text")),
    ],
    config={"service_mode": "public"},
)

UDIO_LYRICS = AdapterSpec(
    name="udio-lyrics",
    display_name="Udio Generate Lyrics",
    family="udio",
    model="music-u",
    task_type="generate_lyrics",
    fields=[
        FieldSpec(name="prompt", target="input.prompt", required=True),
        FieldSpec(name="service_mode", target="config.service_mode", choices=["public", "private"], default="public"),
    ],
    config=dict(WEBHOOK_CONFIG),
)

UDIO_MUSIC = AdapterSpec(
    name="udio-music",
    display_name="Udio Generate Music",
    family="udio",
    model="music-u",
    task_type="generate_music",
    fields=[
        FieldSpec(name="gpt_description_prompt", target="input.gpt_description_prompt", omit="empty"),
        FieldSpec(name="prompt", target="input.prompt", omit="empty"),
        FieldSpec(name="lyrics_type", target="input.lyrics_type", choices=["generate", "user", "instrumental"], default="generate"),
        FieldSpec(name="negative_tags", target="input.negative_tags", omit="empty"),
        FieldSpec(name="seed", kind="integer", target="input.seed", default=-1),
        FieldSpec(name="continue_song_id", target="input.continue_song_id", omit="empty"),
        FieldSpec(name="continue_at", kind="number", target="input.continue_at", omit="empty"),
        FieldSpec(name="service_mode", target="config.service_mode", choices=["public", "private"], default="public"),
    ],
    require_one_of=[["gpt_description_prompt", "prompt"]],
    config=dict(WEBHOOK_CONFIG),
)


ALL_ADAPTERS: List[AdapterSpec] = [
    FLUX_TEXT_TO_IMAGE,
    FLUX_IMAGE_TO_IMAGE,
    MIDJOURNEY_IMAGINE,
    MIDJOURNEY_UPSCALE,
    MIDJOURNEY_DESCRIBE,
    DREAM_MACHINE_TEXT_TO_VIDEO,
    DREAM_MACHINE_IMAGE_TO_VIDEO,
    DREAM_MACHINE_EXTEND_VIDEO,
    KLING_TEXT_TO_VIDEO,
    KLING_IMAGE_TO_VIDEO,
    KLING_VIDEO_EXTEND,
    KLING_LIP_SYNC,
    KLING_EFFECTS,
    KLING_TRY_ON,
    HAILUO_TEXT_TO_VIDEO,
    HAILUO_IMAGE_TO_VIDEO,
    HAILUO_SUBJECT_VIDEO,
    HUNYUAN_TEXT_TO_VIDEO,
    HUNYUAN_IMAGE_TO_VIDEO,
    WANX_TEXT_TO_VIDEO,
    WANX_IMAGE_TO_VIDEO,
    SKYREELS_IMAGE_TO_VIDEO,
    FACESWAP_IMAGE,
    FACESWAP_IMAGE_MULTI,
    FACESWAP_VIDEO,
    IMAGE_UPSCALE,
    VIDEO_UPSCALE,
    REMOVE_BACKGROUND,
    QUBICO_SEGMENT,
    TRELLIS_MODEL_GENERATION,
    MMAUDIO_VIDEO_TO_AUDIO,
    DIFFRHYTHM_AUDIO,
    TEXT_TO_SPEECH,
    UDIO_LYRICS,
    UDIO_MUSIC,
]
