from jpeg_crop_tool.app import main

main()
