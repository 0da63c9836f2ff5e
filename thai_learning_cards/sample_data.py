"""
Starter cards written into empty level files on first run.
"""

SAMPLE_CARDS = {
    1: [
        {
            'id': 1,
            'headword': "สวัสดี",
            'translation': "你好",
            'pronunciation': "sà-wàt-dii",
            'example': "สวัสดีครับ ผมชื่อจอห์น",
            'example_translation': "你好，我叫约翰",
        },
        {
            'id': 2,
            'headword': "ขอบคุณ",
            'translation': "谢谢",
            'pronunciation': "kɔ̀ɔp-kun",
            'example': "ขอบคุณมากครับ",
            'example_translation': "非常感谢",
        },
        {
            'id': 3,
            'headword': "ไม่เป็นไร",
            'translation': "没关系",
            'pronunciation': "mâi-pen-rai",
            'example': "ไม่เป็นไรครับ ไม่ต้องกังวล",
            'example_translation': "没关系，不用担心",
        },
        {
            'id': 4,
            'headword': "ลาก่อน",
            'translation': "再见",
            'pronunciation': "laa-gɔ̀ɔn",
            'example': "ลาก่อนนะครับ แล้วเจอกัน",
            'example_translation': "再见，回头见",
        },
        {
            'id': 5,
            'headword': "ใช่",
            'translation': "是的",
            'pronunciation': "châi",
            'example': "ใช่ครับ ผมเข้าใจแล้ว",
            'example_translation': "是的，我明白了",
        },
    ],
    2: [
        {
            'id': 6,
            'headword': "อาหาร",
            'translation': "食物",
            'pronunciation': "aa-hǎan",
            'example': "อาหารไทยอร่อยมาก",
            'example_translation': "泰国菜很好吃",
        },
        {
            'id': 7,
            'headword': "น้ำ",
            'translation': "水",
            'pronunciation': "náam",
            'example': "ขอน้ำหนึ่งแก้วครับ",
            'example_translation': "请给我一杯水",
        },
        {
            'id': 8,
            'headword': "บ้าน",
            'translation': "家",
            'pronunciation': "bâan",
            'example': "บ้านของผมอยู่ใกล้ที่นี่",
            'example_translation': "我家离这里很近",
        },
    ],
    3: [
        {
            'id': 9,
            'headword': "การทำงาน",
            'translation': "工作",
            'pronunciation': "gaan-tam-ngaan",
            'example': "การทำงานของผมเริ่มเวลา 9 โมง",
            'example_translation': "我的工作9点开始",
        },
        {
            'id': 10,
            'headword': "โรงเรียน",
            'translation': "学校",
            'pronunciation': "roong-rian",
            'example': "โรงเรียนนี้มีนักเรียนเยอะมาก",
            'example_translation': "这所学校有很多学生",
        },
    ],
    4: [
        {
            'id': 11,
            'headword': "ความสุข",
            'translation': "幸福",
            'pronunciation': "kwaam-sùk",
            'example': "ความสุขที่แท้จริงมาจากครอบครัว",
            'example_translation': "真正的幸福来自家庭",
        },
        {
            'id': 12,
            'headword': "ประสบการณ์",
            'translation': "经验",
            'pronunciation': "prà-sòp-gaan",
            'example': "ประสบการณ์นี้ทำให้ผมเรียนรู้มาก",
            'example_translation': "这个经验让我学到很多",
        },
    ],
}
